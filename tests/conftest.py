import pytest

from app.models.analysis import AnalysisRequest
from app.services.ai_analysis.base import AnalysisBackend


class ScriptedBackend(AnalysisBackend):
    """Backend that replays a fixed list of outcomes (dict, None or an exception)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def is_enabled(self):
        return True

    def get_model_info(self):
        return {"name": "scripted", "version": "test"}

    def get_timeout_seconds(self):
        return 0.0

    async def generate(self, contract, request):
        self.calls.append(contract.name)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


ROAD_DESCRIPTION = (
    "A wide crack runs across the carriageway right next to the pedestrian crossing, with "
    "steel rebar exposed along its edge. Vehicles swerve to avoid it and pedestrians risk "
    "tripping. Barricade the lane and schedule an urgent resurfacing repair."
)

RICH_ROAD_OUTPUT = {
    "detectedType": "Road",
    "suggestedTitle": "Pothole near crossing",
    "suggestedDescription": ROAD_DESCRIPTION,
    "suggestedPriority": "High",
}

FORM_OUTPUT = {
    "issueType": "pothole",
    "priority": "Medium",
    "title": "Pothole on main road",
    "description": "A medium pothole is visible in the left lane. It slows traffic but poses no immediate danger.",
}


@pytest.fixture
def analysis_request():
    return AnalysisRequest(
        image_data=b"\xff\xd8\xff\xe0fake-jpeg",
        mime_type="image/jpeg",
        description="large crack with exposed rebar near crossing",
    )


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
