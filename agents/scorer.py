import json
import math
import re

from google import genai
from google.genai import types

from agents.errors import UpstreamOutputFormatError, UpstreamOutputParseError
from agents.rubric_formatter import RubricFormatter
from api.models import GradingRequest, GradingResult
from utils.config import DEFAULT_MODEL
from utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = "You are a helpful grading assistant."

GRADING_TEMPLATE = """You are a strict but fair teacher grading a student's answer. You must carefully analyze the student's actual response and compare it against the rubric criteria.

Question: {question}
Model Answer (Reference): {correct_answer}

Rubric (Scoring Criteria with Points):
{rubric}

Student's Actual Answer: "{student_answer}"

IMPORTANT INSTRUCTIONS:
1. You MUST carefully read and analyze the student's actual answer content first.
2. Compare the student's answer against EACH rubric criterion, checking what the student actually wrote.
3. Evaluate how well the student's answer addresses the question and meets the rubric criteria.
4. Assign a score that matches one of the score levels defined in the rubric (not just the model answer).
5. Provide specific feedback that:
   - References specific parts of the student's answer
   - Explains which rubric criteria were met or not met
   - Suggests concrete improvements based on what the student actually wrote
   - Points out strengths in the student's answer if any

CRITICAL FEEDBACK LENGTH REQUIREMENT:
- The feedback must be concise and focused, between 150-250 characters (Korean characters).
- Do NOT write lengthy paragraphs or multiple detailed explanations.
- Be specific but brief, highlighting the most important points only.
- Focus on the key strengths and weaknesses that directly relate to the rubric criteria.

Your evaluation must be based on the STUDENT'S ACTUAL ANSWER CONTENT, not just comparing to the model answer.

Output JSON format (exactly these two fields):
{{
  "score": number (must match one of the rubric point levels),
  "feedback": "string (concise feedback, 150-250 characters, referencing the student's answer)"
}}"""


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


def build_prompt(request: GradingRequest, rubric_text: str) -> str:
    return GRADING_TEMPLATE.format(
        question=request.question,
        correct_answer=request.correct_answer or "Not provided",
        rubric=rubric_text,
        student_answer=request.student_answer,
    )


class EssayScoringAgent:
    """
    Essay scorer backed by a single JSON-mode completion call.
    Validates the completion into a GradingResult or raises a grading error.
    """

    def __init__(self, client: genai.Client, model: str = DEFAULT_MODEL, temperature: float = 0.2):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.rubric_formatter = RubricFormatter()

    async def grade(self, request: GradingRequest) -> GradingResult:
        rubric_text = self.rubric_formatter.format_rubric(request.rubric)
        prompt = build_prompt(request, rubric_text)

        logger.info(f"→ Requesting grade from {self.model}")
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                temperature=self.temperature,
                response_mime_type="application/json",
            ),
        )

        result = self._parse(response.text)
        logger.info(f"✓ Graded: score={result.score}, feedback={len(result.feedback)} chars")
        return result

    def _parse(self, raw_text) -> GradingResult:
        try:
            parsed = json.loads(self._clean_json(raw_text or ""), parse_constant=_reject_constant)
        except ValueError as e:
            logger.error(f"❌ Failed to parse completion: {e}")
            logger.error(f"Raw response: {raw_text}")
            raise UpstreamOutputParseError() from e

        if not isinstance(parsed, dict):
            logger.error(f"❌ Completion is not an object: {parsed!r}")
            raise UpstreamOutputFormatError()

        score = parsed.get("score")
        feedback = parsed.get("feedback")

        # bool is an int subclass, but true/false is not a score
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not isinstance(feedback, str):
            logger.error(f"❌ Invalid response format: {parsed!r}")
            raise UpstreamOutputFormatError()

        # 1e999 decodes to inf without going through parse_constant
        if isinstance(score, float) and not math.isfinite(score):
            logger.error(f"❌ Non-finite score: {score!r}")
            raise UpstreamOutputFormatError()

        return GradingResult(score=score, feedback=feedback)

    def _clean_json(self, text: str) -> str:
        """
        Strip markdown fences and any text around the outermost braces.
        """
        text = text.strip()
        if text.startswith("```"):
            text = re.sub(r"```json\s*|\s*```", "", text)

        start = text.find("{")
        if start > 0:
            text = text[start:]

        end = text.rfind("}")
        if end > 0:
            text = text[: end + 1]

        return text
