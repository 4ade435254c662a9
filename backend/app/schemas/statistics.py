from uuid import UUID

from pydantic import BaseModel, Field


class ScoreBucketOut(BaseModel):
    lower: float
    upper: float
    count: int


class QuestionCorrectRateOut(BaseModel):
    question_id: UUID
    question_text: str
    attempt_count: int
    correct_count: int
    correct_rate: float


class QuizStatisticsOut(BaseModel):
    quiz_id: UUID
    attempt_count: int
    completed_count: int
    expired_count: int
    passed_count: int
    failed_count: int
    average_score_percent: float | None
    pass_rate: float | None
    score_distribution: list[ScoreBucketOut] = Field(default_factory=list)
    question_correct_rates: list[QuestionCorrectRateOut] = Field(default_factory=list)


class UserStatisticsOut(BaseModel):
    user_id: UUID
    total_attempts: int
    terminal_attempts: int
    passed_attempts: int
    failed_attempts: int
    pass_rate: float | None
    average_score_percent: float | None
