import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services.ai_analysis.base import AnalysisBackendError, MalformedOutputError
from app.services.ai_analysis.classifier import DEFAULT_CLASSIFIER, ErrorKind
from app.services.ai_analysis.contracts import FORM_FIELDS_CONTRACT, RICH_CONTRACT
from app.services.ai_analysis.gemini_provider import GeminiAnalysisBackend
from conftest import RICH_ROAD_OUTPUT


def gemini_response(*texts):
    parts = [SimpleNamespace(text=text) for text in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


@pytest.fixture
def mock_genai():
    with patch("app.services.ai_analysis.gemini_provider.genai") as genai:
        model = MagicMock()
        model.generate_content_async = AsyncMock()
        genai.GenerativeModel.return_value = model
        yield genai, model


def make_backend():
    return GeminiAnalysisBackend(api_key="test-key", model_name="gemini-test", timeout_seconds=5.0)


def test_missing_key_does_not_fail_construction(mock_genai):
    genai, model = mock_genai
    backend = GeminiAnalysisBackend(api_key="")

    assert backend.is_enabled() is False
    genai.configure.assert_not_called()


def test_missing_key_raises_credential_error_on_generate(mock_genai, analysis_request):
    genai, model = mock_genai
    backend = GeminiAnalysisBackend(api_key="   ")

    with pytest.raises(AnalysisBackendError) as exc_info:
        asyncio.run(backend.generate(RICH_CONTRACT, analysis_request))

    assert DEFAULT_CLASSIFIER.classify(exc_info.value) is ErrorKind.CREDENTIAL_MISSING
    model.generate_content_async.assert_not_called()


def test_generate_sends_schema_prompt_and_image(mock_genai, analysis_request):
    genai, model = mock_genai
    model.generate_content_async.return_value = gemini_response(json.dumps(RICH_ROAD_OUTPUT))

    backend = make_backend()
    result = asyncio.run(backend.generate(RICH_CONTRACT, analysis_request))

    assert result == RICH_ROAD_OUTPUT
    genai.configure.assert_called_once_with(api_key="test-key")
    genai.GenerationConfig.assert_called_once_with(
        response_mime_type="application/json",
        response_schema=RICH_CONTRACT.response_schema,
    )
    assert genai.GenerativeModel.call_args[0][0] == "gemini-test"

    contents = model.generate_content_async.call_args[0][0]
    assert contents[0] == RICH_CONTRACT.instructions
    assert contents[1] == "Description Context: large crack with exposed rebar near crossing"
    assert contents[2] == {"mime_type": "image/jpeg", "data": analysis_request.image_data}
    assert model.generate_content_async.call_args[1]["request_options"] == {"timeout": 5.0}


def test_form_fields_prompt_uses_user_notes_label(mock_genai, analysis_request):
    genai, model = mock_genai
    model.generate_content_async.return_value = gemini_response('{"issueType": "other"}')

    asyncio.run(make_backend().generate(FORM_FIELDS_CONTRACT, analysis_request))

    contents = model.generate_content_async.call_args[0][0]
    assert contents[1].startswith("User notes: ")


def test_fenced_json_is_unwrapped(mock_genai, analysis_request):
    genai, model = mock_genai
    fenced = "```json\n" + json.dumps(RICH_ROAD_OUTPUT) + "\n```"
    model.generate_content_async.return_value = gemini_response(fenced)

    assert asyncio.run(make_backend().generate(RICH_CONTRACT, analysis_request)) == RICH_ROAD_OUTPUT


def test_empty_response_returns_none(mock_genai, analysis_request):
    genai, model = mock_genai
    model.generate_content_async.return_value = SimpleNamespace(candidates=[])

    assert asyncio.run(make_backend().generate(RICH_CONTRACT, analysis_request)) is None


def test_invalid_json_is_malformed_output(mock_genai, analysis_request):
    genai, model = mock_genai
    model.generate_content_async.return_value = gemini_response("I cannot see a civic issue here.")

    with pytest.raises(MalformedOutputError):
        asyncio.run(make_backend().generate(RICH_CONTRACT, analysis_request))


def test_client_errors_are_not_wrapped(mock_genai, analysis_request):
    genai, model = mock_genai
    error = RuntimeError("429 Resource has been exhausted (e.g. check quota).")
    model.generate_content_async.side_effect = error

    with pytest.raises(RuntimeError) as exc_info:
        asyncio.run(make_backend().generate(RICH_CONTRACT, analysis_request))
    assert exc_info.value is error


def test_generate_uses_backend_timeout(mock_genai, analysis_request):
    genai, model = mock_genai
    model.generate_content_async.return_value = gemini_response(json.dumps(RICH_ROAD_OUTPUT))
    backend = make_backend()

    with patch.object(GeminiAnalysisBackend, "get_timeout_seconds", return_value=12.0):
        asyncio.run(backend.generate(RICH_CONTRACT, analysis_request))

    assert model.generate_content_async.call_args[1]["request_options"] == {"timeout": 12.0}
