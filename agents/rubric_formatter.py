import json
from typing import Any

from api.models import Rubric, RubricLevel, StructuredRubric, TextRubric
from utils.logging import get_logger

logger = get_logger(__name__)


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _structured(mapping: dict) -> StructuredRubric:
    levels = []
    for level, value in mapping.items():
        if isinstance(value, dict):
            levels.append(
                RubricLevel(
                    level=str(level),
                    value=value,
                    points=value.get("points"),
                    criteria=value.get("criteria"),
                )
            )
        else:
            levels.append(RubricLevel(level=str(level), value=value))
    return StructuredRubric(levels=levels)


def parse_rubric(raw: Any) -> Rubric:
    """
    Resolve a rubric into its text or structured form.

    Mappings and JSON-object strings become structured rubrics; anything
    that fails to decode is kept verbatim as free text. Never raises.
    """
    if raw is None or raw == "":
        return TextRubric(text="")

    if isinstance(raw, dict):
        return _structured(raw)

    if not isinstance(raw, str):
        return TextRubric(text=_to_text(raw))

    if raw.strip().startswith("{"):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Rubric looks like JSON but failed to decode, using raw text: {e}")
            return TextRubric(text=raw)

        if isinstance(decoded, dict):
            return _structured(decoded)

    return TextRubric(text=raw)


def render_level(level: RubricLevel) -> str:
    if level.is_weighted:
        return f"- {level.level} (weight: {_to_text(level.points)}): {_to_text(level.criteria)}"
    return f"- {level.level}: {_to_text(level.value)}"


def render_rubric(rubric: Rubric) -> str:
    """Render a rubric as prompt text, one line per score level."""
    if isinstance(rubric, StructuredRubric):
        return "\n".join(render_level(level) for level in rubric.levels)
    return rubric.text


class RubricFormatter:
    """
    Turns whatever the caller sent as a rubric into the text block
    embedded in the grading prompt.
    """

    def format_rubric(self, raw_rubric: Any) -> str:
        rubric = parse_rubric(raw_rubric)
        if isinstance(rubric, StructuredRubric):
            logger.debug(f"Structured rubric with {len(rubric.levels)} levels")
        return render_rubric(rubric)
