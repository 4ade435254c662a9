import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.mixins import AuditUserMixin, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class QuizAttempt(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'quiz_attempts'
    __table_args__ = (
        UniqueConstraint('quiz_id', 'user_id', 'attempt_number', name='uq_quiz_attempt_number'),
        CheckConstraint(
            "status in ('in_progress', 'completed', 'expired')",
            name='quiz_attempt_status_values',
        ),
    )

    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False
    )
    # Users are owned by the auth service.
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default='in_progress')
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    question_order: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    quiz_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    score_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    passed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    responses: Mapped[list['QuizResponse']] = relationship(
        back_populates='attempt', cascade='all, delete-orphan', order_by='QuizResponse.answered_at'
    )


class QuizResponse(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'quiz_responses'
    __table_args__ = (
        UniqueConstraint('attempt_id', 'question_id', name='uq_quiz_response_attempt_question'),
    )

    attempt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('quiz_attempts.id', ondelete='CASCADE'), nullable=False
    )
    # Points into the attempt's quiz snapshot, not necessarily a live question row.
    question_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    selected_option_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    answered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    attempt: Mapped['QuizAttempt'] = relationship(back_populates='responses')


Index('ix_quiz_attempts_quiz_id', QuizAttempt.quiz_id)
Index('ix_quiz_attempts_user_id', QuizAttempt.user_id)
Index(
    'uq_quiz_attempts_one_in_progress',
    QuizAttempt.quiz_id,
    QuizAttempt.user_id,
    unique=True,
    postgresql_where=text("status = 'in_progress'"),
    sqlite_where=text("status = 'in_progress'"),
)
Index('ix_quiz_responses_attempt_id', QuizResponse.attempt_id)
