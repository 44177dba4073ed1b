from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from utils.config import Settings


def make_settings(api_key="test-key"):
    return Settings(api_key=api_key, model="gemini-2.5-flash-lite", temperature=0.2)


def make_client(text=None, side_effect=None):
    """genai.Client double whose async generate_content returns `text`."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text=text), side_effect=side_effect
    )
    return client


def essay_payload(**overrides):
    payload = {
        "question": "광합성의 과정을 설명하시오.",
        "studentAnswer": "식물은 빛 에너지를 이용해 이산화탄소와 물로 포도당을 만든다.",
        "rubric": '{"5": {"points": 5, "criteria": "명반응과 암반응을 모두 설명"}, "3": "부분 설명"}',
        "correctAnswer": "명반응에서 ATP와 NADPH를 만들고 캘빈 회로에서 포도당을 합성한다.",
        "type": "essay",
    }
    payload.update(overrides)
    return payload
