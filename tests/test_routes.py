import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from app.core.settings import settings
from app.main import app
from app.services.ai_analysis import registry
from app.services.ai_analysis.mock_provider import MockAnalysisBackend
from app.services.ai_analysis.registry import get_analysis_service
from app.services.ai_analysis.service import IssueImageAnalysisService
from conftest import FORM_OUTPUT, RICH_ROAD_OUTPUT, ScriptedBackend, SleepRecorder

client = TestClient(app)

IMAGE = ("pothole.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")


@pytest.fixture
def use_backend():
    def install(*outcomes):
        backend = ScriptedBackend(*outcomes)
        service = IssueImageAnalysisService(backend, sleep=SleepRecorder())
        app.dependency_overrides[get_analysis_service] = lambda: service
        return backend

    yield install
    app.dependency_overrides.clear()


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["analyze_issue"] == "/analyze-issue"


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ai_health_reports_backend(use_backend):
    use_backend()
    response = client.get("/health/ai")

    assert response.status_code == 200
    assert response.json()["model"] == "scripted"
    assert response.json()["backend_ready"] is True


def test_rejects_non_multipart(use_backend):
    backend = use_backend()
    response = client.post("/analyze-issue", json={"image": "abc"})

    assert response.status_code == 400
    assert response.json() == {"error": "Expected multipart/form-data"}
    assert backend.calls == []


def test_rejects_missing_image(use_backend):
    use_backend()
    response = client.post("/analyze-issue", files={"description": (None, "pothole near school")})

    assert response.status_code == 400
    assert response.json() == {"error": "Image file is required"}


def test_rejects_image_sent_as_text(use_backend):
    use_backend()
    response = client.post("/analyze-issue", files={"image": (None, "not a file")})

    assert response.status_code == 400
    assert response.json() == {"error": "Image file is required"}


def test_rejects_empty_image(use_backend):
    use_backend()
    response = client.post("/analyze-issue", files={"image": ("empty.jpg", b"", "image/jpeg")})

    assert response.status_code == 400
    assert "empty" in response.json()["error"]


def test_rejects_non_image_upload(use_backend):
    use_backend()
    response = client.post("/analyze-issue", files={"image": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert "unsupported image type" in response.json()["error"]


def test_form_fields_success(use_backend):
    backend = use_backend(FORM_OUTPUT)
    response = client.post(
        "/analyze-issue",
        files={"image": IMAGE},
        data={"description": "pothole in the left lane"},
    )

    assert response.status_code == 200
    assert response.json() == FORM_OUTPUT
    assert backend.calls == ["autofill_issue_form"]


def test_generic_mime_type_defaults_to_jpeg(use_backend):
    use_backend(FORM_OUTPUT)
    response = client.post(
        "/analyze-issue",
        files={"image": ("photo", b"bytes", "application/octet-stream")},
    )
    assert response.status_code == 200


def test_form_fields_rate_limited_returns_fallback(use_backend):
    use_backend(RuntimeError("429 Too Many Requests"))
    response = client.post("/analyze-issue", files={"image": IMAGE})

    assert response.status_code == 200
    assert response.json()["issueType"] == "other"
    assert response.json()["priority"] == "Medium"


def test_unexpected_error_is_server_error(use_backend):
    use_backend(RuntimeError("upstream exploded"))
    response = client.post("/analyze-issue", files={"image": IMAGE})

    assert response.status_code == 500
    assert response.json() == {"error": "upstream exploded"}


def test_strict_never_errors(use_backend):
    use_backend(RuntimeError("upstream exploded"))
    response = client.post("/analyze-issue/strict", files={"image": IMAGE})

    assert response.status_code == 200
    assert response.json()["title"] == "Incorrect submission; resubmission requested"
    assert response.json()["priority"] == "Low"


def test_strict_success(use_backend):
    use_backend(RICH_ROAD_OUTPUT)
    response = client.post(
        "/analyze-issue/strict",
        files={"image": IMAGE},
        data={"description": "large crack with exposed rebar near crossing"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["issueType"] == "Road Damage"
    assert body["priority"] == "High"
    assert body["title"] == "Pothole near crossing"


def test_rich_success(use_backend):
    use_backend(RICH_ROAD_OUTPUT)
    response = client.post("/analyze-issue/rich", files={"image": IMAGE})

    assert response.status_code == 200
    assert response.json() == RICH_ROAD_OUTPUT


def test_registry_uses_mock_backend_when_ai_disabled():
    registry.reset_analysis_service()
    try:
        with patch.object(settings, "AI_ENABLED", False):
            service = get_analysis_service()
        assert isinstance(service.backend, MockAnalysisBackend)
    finally:
        registry.reset_analysis_service()


def test_mock_backend_end_to_end():
    registry.reset_analysis_service()
    try:
        with patch.object(settings, "AI_ENABLED", False):
            response = client.post(
                "/analyze-issue/strict",
                files={"image": IMAGE},
                data={"description": "large crack with exposed rebar near crossing"},
            )
        assert response.status_code == 200
        assert response.json()["issueType"] == "Road Damage"
        assert response.json()["priority"] == "High"
    finally:
        registry.reset_analysis_service()


def test_unparseable_multipart_body_uses_error_shape(use_backend):
    backend = use_backend()
    response = client.post(
        "/analyze-issue",
        content=b"garbage",
        headers={"content-type": "multipart/form-data"},
    )

    assert response.status_code == 400
    assert set(response.json()) == {"error"}
    assert response.json()["error"].startswith("Invalid multipart body")
    assert backend.calls == []
