from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import InvalidRequestError, NotFoundError
from app.models.quiz import QuestionOption, Quiz, QuizQuestion
from app.schemas.quiz import correct_option_rule_violation


logger = logging.getLogger(__name__)

QUIZ_UPDATE_FIELDS = (
    'title',
    'description',
    'time_limit_minutes',
    'max_attempts',
    'passing_score',
    'randomize_questions',
    'show_results_immediately',
    'allow_review',
    'is_active',
)
QUESTION_UPDATE_FIELDS = ('question_text', 'question_type', 'points', 'order_index', 'explanation', 'options')
# Fields that may be cleared with an explicit null.
NULLABLE_UPDATE_FIELDS = frozenset({'description', 'time_limit_minutes', 'max_attempts', 'explanation'})


def get_quiz(db: Session, quiz_id: UUID, *, active_only: bool = False) -> Quiz:
    base = (
        select(Quiz)
        .where(Quiz.id == quiz_id)
        .options(selectinload(Quiz.questions).selectinload(QuizQuestion.options))
    )
    if active_only:
        base = base.where(Quiz.is_active.is_(True))
    quiz = db.scalar(base)
    if not quiz:
        raise NotFoundError('Quiz not found', quiz_id=quiz_id)
    return quiz


def create_quiz(db: Session, *, payload: dict, actor_user_id: UUID) -> Quiz:
    quiz = Quiz(
        course_id=payload['course_id'],
        title=payload['title'].strip(),
        description=payload.get('description'),
        time_limit_minutes=payload.get('time_limit_minutes'),
        max_attempts=payload.get('max_attempts'),
        passing_score=payload.get('passing_score', 70),
        randomize_questions=payload.get('randomize_questions', False),
        show_results_immediately=payload.get('show_results_immediately', True),
        allow_review=payload.get('allow_review', True),
        is_active=True,
        created_by=actor_user_id,
        updated_by=actor_user_id,
    )
    db.add(quiz)
    db.flush()
    return get_quiz(db, quiz.id)


def add_question(db: Session, *, quiz_id: UUID, payload: dict, actor_user_id: UUID) -> QuizQuestion:
    quiz = get_quiz(db, quiz_id)

    order_index = payload.get('order_index')
    if order_index is None:
        current_max = db.scalar(select(func.max(QuizQuestion.order_index)).where(QuizQuestion.quiz_id == quiz.id))
        order_index = 0 if current_max is None else current_max + 1

    question = QuizQuestion(
        question_text=payload['question_text'].strip(),
        question_type=payload['question_type'],
        points=payload.get('points', 1),
        order_index=order_index,
        explanation=payload.get('explanation'),
        created_by=actor_user_id,
        updated_by=actor_user_id,
    )
    question.options.extend(_build_options(payload['options'], actor_user_id))

    quiz.questions.append(question)
    quiz.updated_by = actor_user_id
    db.flush()
    return question


def _filter_changes(payload: dict, allowed: tuple[str, ...]) -> dict[str, Any]:
    return {
        field: value
        for field, value in payload.items()
        if field in allowed and (value is not None or field in NULLABLE_UPDATE_FIELDS)
    }


def _build_options(options: list[dict], actor_user_id: UUID) -> list[QuestionOption]:
    return [
        QuestionOption(
            option_text=option['option_text'],
            is_correct=bool(option['is_correct']),
            order_index=idx,
            explanation=option.get('explanation'),
            created_by=actor_user_id,
            updated_by=actor_user_id,
        )
        for idx, option in enumerate(options)
    ]


def update_quiz(db: Session, *, quiz_id: UUID, payload: dict, actor_user_id: UUID) -> Quiz:
    quiz = get_quiz(db, quiz_id)
    changes = _filter_changes(payload, QUIZ_UPDATE_FIELDS)
    if not changes:
        raise InvalidRequestError('No valid fields to update', quiz_id=quiz.id, reason='no_fields')

    for field, value in changes.items():
        setattr(quiz, field, value.strip() if field == 'title' else value)
    quiz.updated_by = actor_user_id
    db.flush()
    logger.info('Quiz %s updated by %s: %s', quiz.id, actor_user_id, sorted(changes))
    return get_quiz(db, quiz.id)


def get_question(db: Session, *, quiz_id: UUID, question_id: UUID) -> QuizQuestion:
    question = db.scalar(
        select(QuizQuestion)
        .where(QuizQuestion.id == question_id, QuizQuestion.quiz_id == quiz_id)
        .options(selectinload(QuizQuestion.options))
    )
    if not question:
        raise NotFoundError('Question not found', quiz_id=quiz_id, question_id=question_id)
    return question


def update_question(
    db: Session,
    *,
    quiz_id: UUID,
    question_id: UUID,
    payload: dict,
    actor_user_id: UUID,
) -> QuizQuestion:
    """Edit a question in place.

    Running and finished attempts keep grading against their own snapshot, so
    an edit only affects attempts started afterwards.
    """
    question = get_question(db, quiz_id=quiz_id, question_id=question_id)
    changes = _filter_changes(payload, QUESTION_UPDATE_FIELDS)
    if not changes:
        raise InvalidRequestError('No valid fields to update', question_id=question.id, reason='no_fields')

    question_type = changes.get('question_type', question.question_type)
    if 'options' in changes:
        correct_flags = [bool(option['is_correct']) for option in changes['options']]
    else:
        correct_flags = [option.is_correct for option in question.options]
    violation = correct_option_rule_violation(question_type, correct_flags)
    if violation:
        raise InvalidRequestError(violation, question_id=question.id, reason='correct_option_rules')

    for field in ('question_text', 'question_type', 'points', 'order_index', 'explanation'):
        if field in changes:
            value = changes[field]
            setattr(question, field, value.strip() if field == 'question_text' else value)

    if 'options' in changes:
        question.options.clear()
        # Old rows must be gone before new ones reuse their order_index.
        db.flush()
        question.options.extend(_build_options(changes['options'], actor_user_id))

    question.updated_by = actor_user_id
    db.flush()
    logger.info('Question %s of quiz %s updated by %s: %s', question.id, quiz_id, actor_user_id, sorted(changes))
    return question


def delete_question(db: Session, *, quiz_id: UUID, question_id: UUID, actor_user_id: UUID) -> None:
    quiz = get_quiz(db, quiz_id)
    question = next((item for item in quiz.questions if item.id == question_id), None)
    if question is None:
        raise NotFoundError('Question not found', quiz_id=quiz_id, question_id=question_id)

    quiz.questions.remove(question)
    quiz.updated_by = actor_user_id
    db.flush()
    logger.info('Question %s removed from quiz %s by %s', question_id, quiz.id, actor_user_id)


def snapshot_quiz(quiz: Quiz) -> dict[str, Any]:
    """Freeze the parts of a quiz that scoring and review depend on.

    Attempts are graded against this snapshot, so instructor edits made while
    an attempt is running never change that attempt's outcome.
    """
    return {
        'quiz_id': str(quiz.id),
        'title': quiz.title,
        'time_limit_minutes': quiz.time_limit_minutes,
        'passing_score': quiz.passing_score,
        'show_results_immediately': quiz.show_results_immediately,
        'allow_review': quiz.allow_review,
        'questions': [
            {
                'id': str(question.id),
                'question_text': question.question_text,
                'question_type': question.question_type,
                'points': question.points,
                'explanation': question.explanation,
                'options': [
                    {
                        'id': str(option.id),
                        'option_text': option.option_text,
                        'is_correct': option.is_correct,
                    }
                    for option in sorted(question.options, key=lambda item: item.order_index)
                ],
            }
            for question in sorted(quiz.questions, key=lambda item: item.order_index)
        ],
    }


def snapshot_questions_by_id(snapshot: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {question['id']: question for question in snapshot.get('questions', [])}
