import pytest

from utils.config import QuizSettings


@pytest.fixture
def settings():
    return QuizSettings(openai_api_key="test-key", per_call_timeout_ms=2000)
