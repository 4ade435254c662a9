from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.constants import (
    MAX_OPTIONS_PER_QUESTION,
    MIN_OPTIONS_PER_QUESTION,
    QUESTION_TYPE_MULTIPLE_CHOICE,
    QUESTION_TYPE_MULTIPLE_SELECT,
    QUESTION_TYPE_TRUE_FALSE,
)
from app.schemas.common import BaseSchema, TimestampedSchema


QuestionType = Literal['multiple_choice', 'multiple_select', 'true_false']


def correct_option_rule_violation(question_type: str, options: list[bool]) -> str | None:
    """Return why a question's ``is_correct`` flags break its type's rules, or None."""
    correct_count = sum(1 for is_correct in options if is_correct)
    if question_type == QUESTION_TYPE_MULTIPLE_CHOICE and correct_count != 1:
        return 'Multiple choice questions must have exactly 1 correct option'
    if question_type == QUESTION_TYPE_MULTIPLE_SELECT and correct_count < 1:
        return 'Multiple select questions must have at least 1 correct option'
    if question_type == QUESTION_TYPE_TRUE_FALSE and (len(options) != 2 or correct_count != 1):
        return 'True/false questions must have exactly 2 options with 1 correct'
    return None


class QuizCreate(BaseModel):
    course_id: UUID
    title: str = Field(min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    time_limit_minutes: int | None = Field(default=None, ge=1, le=480)
    max_attempts: int | None = Field(default=None, ge=1, le=10)
    passing_score: float = Field(default=70, ge=0, le=100)
    randomize_questions: bool = False
    show_results_immediately: bool = True
    allow_review: bool = True


class QuizUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    time_limit_minutes: int | None = Field(default=None, ge=1, le=480)
    max_attempts: int | None = Field(default=None, ge=1, le=10)
    passing_score: float | None = Field(default=None, ge=0, le=100)
    randomize_questions: bool | None = None
    show_results_immediately: bool | None = None
    allow_review: bool | None = None
    is_active: bool | None = None


class QuestionOptionCreate(BaseModel):
    option_text: str = Field(min_length=1, max_length=500)
    is_correct: bool
    explanation: str | None = Field(default=None, max_length=1000)


class QuestionCreate(BaseModel):
    question_text: str = Field(min_length=5, max_length=1000)
    question_type: QuestionType
    points: float = Field(default=1, ge=0.5, le=100)
    explanation: str | None = Field(default=None, max_length=1000)
    order_index: int | None = Field(default=None, ge=0)
    options: list[QuestionOptionCreate] = Field(
        min_length=MIN_OPTIONS_PER_QUESTION, max_length=MAX_OPTIONS_PER_QUESTION
    )

    @model_validator(mode='after')
    def validate_correct_options(self) -> 'QuestionCreate':
        violation = correct_option_rule_violation(
            self.question_type, [option.is_correct for option in self.options]
        )
        if violation:
            raise ValueError(violation)
        return self


class QuestionUpdate(BaseModel):
    question_text: str | None = Field(default=None, min_length=5, max_length=1000)
    question_type: QuestionType | None = None
    points: float | None = Field(default=None, ge=0.5, le=100)
    explanation: str | None = Field(default=None, max_length=1000)
    order_index: int | None = Field(default=None, ge=0)
    options: list[QuestionOptionCreate] | None = Field(
        default=None, min_length=MIN_OPTIONS_PER_QUESTION, max_length=MAX_OPTIONS_PER_QUESTION
    )


class QuestionOptionPublicOut(BaseSchema):
    id: UUID
    option_text: str
    order_index: int


class QuestionOptionOut(QuestionOptionPublicOut):
    is_correct: bool
    explanation: str | None


class QuestionPublicOut(BaseSchema):
    id: UUID
    question_text: str
    question_type: str
    points: float
    order_index: int
    options: list[QuestionOptionPublicOut]


class QuestionOut(QuestionPublicOut):
    explanation: str | None
    options: list[QuestionOptionOut]


class QuizSummaryOut(TimestampedSchema):
    course_id: UUID
    title: str
    description: str | None
    time_limit_minutes: int | None
    max_attempts: int | None
    passing_score: float
    randomize_questions: bool
    show_results_immediately: bool
    allow_review: bool
    is_active: bool


class QuizPublicOut(QuizSummaryOut):
    questions: list[QuestionPublicOut]


class QuizOut(QuizSummaryOut):
    questions: list[QuestionOut]
