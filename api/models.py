from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ESSAY_TYPE = "essay"


class GradingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    question: str
    student_answer: str = Field(alias="studentAnswer")
    type: str
    rubric: Any = None
    correct_answer: Optional[str] = Field(default=None, alias="correctAnswer")

    @property
    def is_essay(self) -> bool:
        return self.type == ESSAY_TYPE


class RubricLevel(BaseModel):
    level: str
    value: Any = None
    points: Any = None
    criteria: Any = None

    @property
    def is_weighted(self) -> bool:
        return bool(self.points) and bool(self.criteria)


class TextRubric(BaseModel):
    kind: Literal["text"] = "text"
    text: str = ""


class StructuredRubric(BaseModel):
    kind: Literal["structured"] = "structured"
    levels: List[RubricLevel]


Rubric = Union[TextRubric, StructuredRubric]


class GradingResult(BaseModel):
    score: Union[int, float]
    feedback: str


class ErrorResponse(BaseModel):
    error: str
    score: int = 0
    feedback: str


class PassThroughResponse(BaseModel):
    message: str
