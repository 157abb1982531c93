# exam_builder/schemas/exam.py
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from exam_builder.models.question import QuestionType


# =========================
# Exam
# =========================
class ExamCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None


class ExamUpdate(BaseModel):
    """Partial update: only the fields present in the request are applied."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class ExamRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =========================
# Question
# =========================
class QuestionCreate(BaseModel):
    exam_id: int
    type: QuestionType
    question_text: str = Field(..., min_length=1)
    points: float = Field(..., gt=0)
    order_index: int = Field(..., ge=0)


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = Field(None, min_length=1)
    points: Optional[float] = Field(None, gt=0)
    order_index: Optional[int] = Field(None, ge=0)


class QuestionRead(BaseModel):
    id: int
    exam_id: int
    type: QuestionType
    question_text: str
    points: float
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True


# =========================
# Multiple choice option
# =========================
class OptionCreate(BaseModel):
    question_id: int
    option_text: str = Field(..., min_length=1)
    is_correct: bool
    order_index: int = Field(..., ge=0)


class OptionUpdate(BaseModel):
    option_text: Optional[str] = Field(None, min_length=1)
    is_correct: Optional[bool] = None
    order_index: Optional[int] = Field(None, ge=0)


class OptionRead(BaseModel):
    id: int
    question_id: int
    option_text: str
    is_correct: bool
    order_index: int

    class Config:
        from_attributes = True


# =========================
# Formula answer
# =========================
class FormulaAnswerCreate(BaseModel):
    question_id: int
    expected_answer: str = Field(..., min_length=1)


class FormulaAnswerUpdate(BaseModel):
    expected_answer: Optional[str] = Field(None, min_length=1)


class FormulaAnswerRead(BaseModel):
    id: int
    question_id: int
    expected_answer: str

    class Config:
        from_attributes = True


# =========================
# Aggregate (exam + questions + payloads)
# =========================
class OptionsPayload(BaseModel):
    kind: Literal["options"] = "options"
    options: List[OptionRead]


class FormulaPayload(BaseModel):
    kind: Literal["formula"] = "formula"
    answer: FormulaAnswerRead


Payload = Annotated[Union[OptionsPayload, FormulaPayload], Field(discriminator="kind")]


class QuestionWithPayload(QuestionRead):
    # None until options or an answer have been stored
    payload: Optional[Payload] = None


class ExamAggregate(ExamRead):
    questions: List[QuestionWithPayload] = []


# =========================
# Advisory consistency report
# =========================
class ExamIssue(BaseModel):
    code: Literal[
        "DUPLICATE_QUESTION_ORDER",
        "DUPLICATE_OPTION_ORDER",
        "MISSING_PAYLOAD",
        "NO_CORRECT_OPTION",
    ]
    message: str
    question_id: Optional[int] = None


class DeleteResponse(BaseModel):
    deleted: bool
