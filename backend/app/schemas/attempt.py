from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import BaseSchema, PaginatedResponse


class AttemptOut(BaseSchema):
    id: UUID
    quiz_id: UUID
    user_id: UUID
    attempt_number: int
    status: str
    started_at: datetime
    completed_at: datetime | None
    time_spent_seconds: int | None
    score: float | None
    max_score: float | None
    score_percent: float | None
    passed: bool | None


class AttemptQuestionOptionOut(BaseModel):
    id: UUID
    option_text: str
    is_correct: bool | None = None


class AttemptQuestionOut(BaseModel):
    id: UUID
    question_text: str
    question_type: str
    points: float
    options: list[AttemptQuestionOptionOut]


class AttemptStartOut(BaseModel):
    attempt: AttemptOut
    deadline: datetime | None
    questions: list[AttemptQuestionOut]


class ResponseSubmit(BaseModel):
    question_id: UUID
    selected_option_ids: list[UUID] = Field(default_factory=list)


class ResponseOut(BaseSchema):
    attempt_id: UUID
    question_id: UUID
    selected_option_ids: list[UUID]
    answered_at: datetime
    is_correct: bool | None = None


class AttemptReviewQuestionOut(AttemptQuestionOut):
    explanation: str | None = None
    selected_option_ids: list[UUID] = Field(default_factory=list)
    is_correct: bool | None = None


class AttemptDetailOut(BaseModel):
    attempt: AttemptOut
    deadline: datetime | None
    results_visible: bool
    questions: list[AttemptReviewQuestionOut]


class AttemptResultOut(BaseModel):
    attempt: AttemptOut
    correct_count: int
    total_questions: int


class AttemptListResponse(PaginatedResponse[AttemptOut]):
    pass


class BestAttemptOut(BaseModel):
    attempt: AttemptOut | None


class ExpireOverdueOut(BaseModel):
    expired_count: int
