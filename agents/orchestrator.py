from typing import Optional

import pydantic
from google import genai

from agents.errors import ConfigurationError, FieldTypeError, ValidationError
from agents.scorer import EssayScoringAgent
from api.models import GradingRequest, GradingResult, PassThroughResponse
from utils.config import Settings
from utils.feedback import truncate_feedback
from utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("question", "studentAnswer", "type")
PASS_THROUGH_MESSAGE = "Simple types should be graded locally or via strict match."


class GradingOrchestrator:
    """
    Coordinates one grading request end to end:
    - Validate required fields and the configured credential
    - Short-circuit non-essay types
    - Grade essays with the scoring agent (one upstream call, no retry)
    - Bound the feedback length
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[genai.Client] = None):
        self.settings = settings or Settings.from_env()
        self.client = client
        self.scorer_agent = None

    def _get_scorer_agent(self) -> EssayScoringAgent:
        """Lazy load the scorer (only once a credential is known to exist)"""
        if self.scorer_agent is None:
            if self.client is None:
                self.client = genai.Client(api_key=self.settings.api_key)
            self.scorer_agent = EssayScoringAgent(
                self.client,
                model=self.settings.model,
                temperature=self.settings.temperature,
            )
            logger.info(f"✓ Scorer agent ready ({self.settings.model})")
        return self.scorer_agent

    def _validate(self, payload: dict) -> GradingRequest:
        missing = [field for field in REQUIRED_FIELDS if not payload.get(field)]
        if missing:
            logger.warning(f"⚠️  Missing required fields: {', '.join(missing)}")
            raise ValidationError()

        try:
            return GradingRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            logger.warning(f"⚠️  Invalid field types: {e.error_count()} error(s)")
            raise FieldTypeError() from e

    async def process(self, payload: dict) -> dict:
        request = self._validate(payload)

        if not self.settings.has_credential:
            logger.error("❌ GOOGLE_API_KEY is not configured")
            raise ConfigurationError()

        if not request.is_essay:
            logger.info(f"→ Type '{request.type}' is graded client-side, skipping")
            return PassThroughResponse(message=PASS_THROUGH_MESSAGE).model_dump()

        result = await self._get_scorer_agent().grade(request)

        feedback = truncate_feedback(result.feedback)
        if feedback != result.feedback:
            logger.info(f"Feedback truncated from {len(result.feedback)} to {len(feedback)} chars")

        return GradingResult(score=result.score, feedback=feedback).model_dump()
