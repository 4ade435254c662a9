from __future__ import annotations

import logging
import random
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import (
    AttemptExpiredError,
    AttemptLimitExceededError,
    AttemptNotActiveError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from app.core.security import Actor
from app.models.attempt import QuizAttempt, QuizResponse
from app.models.constants import (
    ATTEMPT_STATUS_COMPLETED,
    ATTEMPT_STATUS_EXPIRED,
    ATTEMPT_STATUS_IN_PROGRESS,
    TERMINAL_ATTEMPT_STATUSES,
)
from app.services import quiz_service, response_validator, scoring_service


logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    'postgresql': postgresql_insert,
    'sqlite': sqlite_insert,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def attempt_deadline(attempt: QuizAttempt) -> datetime | None:
    time_limit = (attempt.quiz_snapshot or {}).get('time_limit_minutes')
    if not time_limit:
        return None
    return as_utc(attempt.started_at) + timedelta(minutes=time_limit)


def is_past_deadline(attempt: QuizAttempt, now: datetime | None = None) -> bool:
    deadline = attempt_deadline(attempt)
    return deadline is not None and (now or _utcnow()) > deadline


def get_attempt(db: Session, attempt_id: UUID) -> QuizAttempt:
    attempt = db.scalar(
        select(QuizAttempt)
        .where(QuizAttempt.id == attempt_id)
        .options(selectinload(QuizAttempt.responses))
        .execution_options(populate_existing=True)
    )
    if not attempt:
        raise NotFoundError('Attempt not found', attempt_id=attempt_id)
    return attempt


def ensure_can_access(attempt: QuizAttempt, actor: Actor) -> None:
    if actor.is_staff or attempt.user_id == actor.user_id:
        return
    raise ForbiddenError('Not allowed to access this attempt', attempt_id=attempt.id)


def _find_in_progress_attempt(db: Session, quiz_id: UUID, user_id: UUID) -> QuizAttempt | None:
    return db.scalar(
        select(QuizAttempt)
        .where(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.user_id == user_id,
            QuizAttempt.status == ATTEMPT_STATUS_IN_PROGRESS,
        )
        .execution_options(populate_existing=True)
    )


def _count_terminal_attempts(db: Session, quiz_id: UUID, user_id: UUID) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(QuizAttempt)
            .where(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.user_id == user_id,
                QuizAttempt.status.in_(TERMINAL_ATTEMPT_STATUSES),
            )
        )
        or 0
    )


def start_attempt(db: Session, *, quiz_id: UUID, user_id: UUID) -> QuizAttempt:
    quiz = quiz_service.get_quiz(db, quiz_id, active_only=True)

    existing = _find_in_progress_attempt(db, quiz.id, user_id)
    if existing:
        if not is_past_deadline(existing):
            return existing
        _finalize_attempt(db, existing, actor_user_id=user_id)

    if quiz.max_attempts is not None:
        attempts_used = _count_terminal_attempts(db, quiz.id, user_id)
        if attempts_used >= quiz.max_attempts:
            raise AttemptLimitExceededError(
                f'Maximum attempts ({quiz.max_attempts}) reached for this quiz',
                quiz_id=quiz.id,
                user_id=user_id,
                max_attempts=quiz.max_attempts,
                attempts_used=attempts_used,
            )

    if not quiz.questions:
        raise InvalidRequestError('Quiz has no questions to attempt', quiz_id=quiz.id, reason='empty_quiz')

    snapshot = quiz_service.snapshot_quiz(quiz)
    question_order = [question['id'] for question in snapshot['questions']]
    if quiz.randomize_questions:
        random.shuffle(question_order)

    last_number = db.scalar(
        select(func.max(QuizAttempt.attempt_number)).where(
            QuizAttempt.quiz_id == quiz.id, QuizAttempt.user_id == user_id
        )
    )

    attempt = QuizAttempt(
        quiz_id=quiz.id,
        user_id=user_id,
        attempt_number=(last_number or 0) + 1,
        status=ATTEMPT_STATUS_IN_PROGRESS,
        started_at=_utcnow(),
        question_order=question_order,
        quiz_snapshot=snapshot,
        created_by=user_id,
        updated_by=user_id,
    )
    try:
        with db.begin_nested():
            db.add(attempt)
    except IntegrityError:
        # A concurrent start won the (quiz, user, in_progress) slot; hand back its attempt.
        winner = _find_in_progress_attempt(db, quiz.id, user_id)
        if winner is None:
            raise
        logger.info('Concurrent start for quiz %s user %s resolved to attempt %s', quiz.id, user_id, winner.id)
        return winner

    logger.info(
        'Started attempt %s (#%s) for quiz %s user %s', attempt.id, attempt.attempt_number, quiz.id, user_id
    )
    return attempt


def _load_answers(db: Session, attempt: QuizAttempt) -> tuple[list[QuizResponse], dict[str, Any]]:
    responses = db.scalars(
        select(QuizResponse)
        .where(QuizResponse.attempt_id == attempt.id)
        .execution_options(populate_existing=True)
    ).all()
    questions = quiz_service.snapshot_questions_by_id(attempt.quiz_snapshot or {})
    answers = {}
    for response in responses:
        question = questions.get(str(response.question_id))
        if question is None:
            continue
        answer = response_validator.answer_from_storage(question['question_type'], response.selected_option_ids)
        if answer is not None:
            answers[question['id']] = answer
    return list(responses), answers


def _finalize_attempt(
    db: Session,
    attempt: QuizAttempt,
    *,
    actor_user_id: UUID | None,
    now: datetime | None = None,
) -> bool:
    """Score and close an in-progress attempt in a single conditional write.

    Returns False when another caller finalized the attempt first; the attempt
    is refreshed either way so callers always see the stored result.
    """
    now = now or _utcnow()
    final_status = ATTEMPT_STATUS_EXPIRED if is_past_deadline(attempt, now) else ATTEMPT_STATUS_COMPLETED
    responses, answers = _load_answers(db, attempt)
    result = scoring_service.score_attempt(attempt.quiz_snapshot or {}, answers)
    time_spent = max(0, int((now - as_utc(attempt.started_at)).total_seconds()))

    outcome = db.execute(
        update(QuizAttempt)
        .where(QuizAttempt.id == attempt.id, QuizAttempt.status == ATTEMPT_STATUS_IN_PROGRESS)
        .values(
            status=final_status,
            score=result.score,
            max_score=result.max_score,
            score_percent=result.score_percent,
            passed=result.passed,
            completed_at=now,
            time_spent_seconds=time_spent,
            updated_by=actor_user_id,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if outcome.rowcount == 0:
        db.refresh(attempt)
        logger.info('Attempt %s was already finalized as %s', attempt.id, attempt.status)
        return False

    outcomes = result.outcomes_by_question
    for response in responses:
        question_outcome = outcomes.get(str(response.question_id))
        response.is_correct = question_outcome.is_correct if question_outcome else False
    db.flush()
    db.refresh(attempt)
    logger.info(
        'Finalized attempt %s as %s: %.2f/%.2f (%.2f%%) passed=%s',
        attempt.id,
        final_status,
        result.score,
        result.max_score,
        result.score_percent,
        result.passed,
    )
    return True


def complete_attempt(db: Session, *, attempt_id: UUID, actor_user_id: UUID) -> QuizAttempt:
    attempt = get_attempt(db, attempt_id)
    if attempt.status in TERMINAL_ATTEMPT_STATUSES:
        return attempt
    _finalize_attempt(db, attempt, actor_user_id=actor_user_id)
    return get_attempt(db, attempt.id)


def _upsert_response(
    db: Session,
    *,
    attempt_id: UUID,
    question_id: UUID,
    selected_option_ids: list[str],
    actor_user_id: UUID,
) -> None:
    now = _utcnow()
    insert_fn = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert_fn is not None:
        stmt = insert_fn(QuizResponse).values(
            id=uuid.uuid4(),
            attempt_id=attempt_id,
            question_id=question_id,
            selected_option_ids=selected_option_ids,
            answered_at=now,
            created_by=actor_user_id,
            updated_by=actor_user_id,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[QuizResponse.attempt_id, QuizResponse.question_id],
            set_={
                'selected_option_ids': stmt.excluded.selected_option_ids,
                'answered_at': stmt.excluded.answered_at,
                'updated_by': stmt.excluded.updated_by,
                'updated_at': now,
            },
        )
        db.execute(stmt)
        return

    existing = db.scalar(
        select(QuizResponse).where(QuizResponse.attempt_id == attempt_id, QuizResponse.question_id == question_id)
    )
    if existing:
        existing.selected_option_ids = selected_option_ids
        existing.answered_at = now
        existing.updated_by = actor_user_id
    else:
        db.add(
            QuizResponse(
                attempt_id=attempt_id,
                question_id=question_id,
                selected_option_ids=selected_option_ids,
                answered_at=now,
                created_by=actor_user_id,
                updated_by=actor_user_id,
            )
        )
    db.flush()


def submit_response(
    db: Session,
    *,
    attempt_id: UUID,
    question_id: UUID,
    selected_option_ids: list[UUID] | list[str],
    actor_user_id: UUID,
) -> QuizResponse:
    attempt = get_attempt(db, attempt_id)
    if attempt.status != ATTEMPT_STATUS_IN_PROGRESS:
        raise AttemptNotActiveError(attempt_id=attempt.id, status=attempt.status)

    if is_past_deadline(attempt):
        deadline = attempt_deadline(attempt)
        _finalize_attempt(db, attempt, actor_user_id=actor_user_id)
        raise AttemptExpiredError(
            attempt_id=attempt.id,
            deadline=deadline.isoformat() if deadline else None,
            reason='time_limit_passed',
        )

    question = quiz_service.snapshot_questions_by_id(attempt.quiz_snapshot or {}).get(str(question_id))
    if question is None:
        raise NotFoundError('Question not found in this attempt', attempt_id=attempt.id, question_id=question_id)

    answer = response_validator.validate_answer(question, selected_option_ids)
    _upsert_response(
        db,
        attempt_id=attempt.id,
        question_id=UUID(question['id']),
        selected_option_ids=response_validator.answer_to_storage(answer),
        actor_user_id=actor_user_id,
    )
    return db.scalar(
        select(QuizResponse)
        .where(QuizResponse.attempt_id == attempt.id, QuizResponse.question_id == UUID(question['id']))
        .execution_options(populate_existing=True)
    )


def expire_overdue_attempts(db: Session, *, now: datetime | None = None) -> int:
    now = now or _utcnow()
    candidates = db.scalars(
        select(QuizAttempt)
        .where(QuizAttempt.status == ATTEMPT_STATUS_IN_PROGRESS)
        .order_by(QuizAttempt.started_at)
        .execution_options(populate_existing=True)
    ).all()

    expired_count = 0
    for attempt in candidates:
        if not is_past_deadline(attempt, now):
            continue
        if _finalize_attempt(db, attempt, actor_user_id=None, now=now):
            expired_count += 1

    if expired_count:
        logger.info('Expired %s overdue attempts', expired_count)
    return expired_count


def list_user_attempts(
    db: Session,
    *,
    quiz_id: UUID,
    user_id: UUID,
    page: int,
    page_size: int,
) -> tuple[list[QuizAttempt], int]:
    base = select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.user_id == user_id)
    total = db.scalar(select(func.count()).select_from(base.subquery()))
    items = db.scalars(
        base.order_by(QuizAttempt.started_at.desc(), QuizAttempt.attempt_number.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()
    return list(items), int(total or 0)


def build_attempt_questions(attempt: QuizAttempt) -> list[dict[str, Any]]:
    """Questions in presentation order, without correctness flags."""
    questions = quiz_service.snapshot_questions_by_id(attempt.quiz_snapshot or {})
    payload = []
    for question_id in attempt.question_order or []:
        question = questions.get(question_id)
        if question is None:
            continue
        payload.append(
            {
                'id': question['id'],
                'question_text': question['question_text'],
                'question_type': question['question_type'],
                'points': question['points'],
                'options': [
                    {'id': option['id'], 'option_text': option['option_text']}
                    for option in question.get('options', [])
                ],
            }
        )
    return payload


def build_attempt_detail(attempt: QuizAttempt, actor: Actor) -> dict[str, Any]:
    snapshot = attempt.quiz_snapshot or {}
    terminal = attempt.status in TERMINAL_ATTEMPT_STATUSES
    results_visible = terminal and (bool(snapshot.get('show_results_immediately')) or actor.is_staff)
    review_allowed = actor.is_staff or not terminal or bool(snapshot.get('allow_review', True))

    questions: list[dict[str, Any]] = []
    if review_allowed:
        responses = {str(response.question_id): response for response in attempt.responses}
        snapshot_questions = quiz_service.snapshot_questions_by_id(snapshot)
        for item in build_attempt_questions(attempt):
            response = responses.get(item['id'])
            if results_visible:
                options = snapshot_questions[item['id']].get('options', [])
                item['options'] = [
                    {'id': option['id'], 'option_text': option['option_text'], 'is_correct': option['is_correct']}
                    for option in options
                ]
                item['explanation'] = snapshot_questions[item['id']].get('explanation')
                item['is_correct'] = bool(response and response.is_correct)
            item['selected_option_ids'] = list(response.selected_option_ids) if response else []
            questions.append(item)

    return {
        'attempt': attempt,
        'deadline': attempt_deadline(attempt),
        'results_visible': results_visible,
        'questions': questions,
    }
