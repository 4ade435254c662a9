import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.mixins import AuditUserMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Quiz(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'quizzes'
    __table_args__ = (
        CheckConstraint('passing_score >= 0 and passing_score <= 100', name='quiz_passing_score_range'),
        CheckConstraint('time_limit_minutes is null or time_limit_minutes >= 1', name='quiz_time_limit_positive'),
        CheckConstraint('max_attempts is null or max_attempts >= 1', name='quiz_max_attempts_positive'),
    )

    # Courses live in the catalog service; only the reference is kept here.
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_limit_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    passing_score: Mapped[float] = mapped_column(Float, nullable=False, default=70)
    randomize_questions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_results_immediately: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    questions: Mapped[list['QuizQuestion']] = relationship(
        back_populates='quiz',
        cascade='all, delete-orphan',
        order_by='QuizQuestion.order_index',
    )


class QuizQuestion(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'quiz_questions'
    __table_args__ = (
        CheckConstraint(
            "question_type in ('multiple_choice', 'multiple_select', 'true_false')",
            name='quiz_question_type_values',
        ),
        CheckConstraint('points >= 0.5', name='quiz_question_points_min'),
    )

    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(30), nullable=False)
    points: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    quiz: Mapped['Quiz'] = relationship(back_populates='questions')
    options: Mapped[list['QuestionOption']] = relationship(
        back_populates='question',
        cascade='all, delete-orphan',
        order_by='QuestionOption.order_index',
    )


class QuestionOption(UUIDPrimaryKeyMixin, TimestampMixin, AuditUserMixin, Base):
    __tablename__ = 'question_options'
    __table_args__ = (
        UniqueConstraint('question_id', 'order_index', name='uq_question_option_order'),
    )

    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('quiz_questions.id', ondelete='CASCADE'), nullable=False
    )
    option_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    question: Mapped['QuizQuestion'] = relationship(back_populates='options')


Index('ix_quizzes_course_id', Quiz.course_id)
Index('ix_quiz_questions_quiz_id', QuizQuestion.quiz_id)
Index('ix_question_options_question_id', QuestionOption.question_id)
