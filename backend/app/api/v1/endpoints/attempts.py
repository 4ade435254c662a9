from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import Pagination, get_current_actor, require_roles
from app.core.exceptions import AttemptExpiredError, ForbiddenError
from app.core.security import Actor
from app.db.session import get_db
from app.schemas.attempt import (
    AttemptDetailOut,
    AttemptListResponse,
    AttemptOut,
    AttemptResultOut,
    AttemptStartOut,
    BestAttemptOut,
    ExpireOverdueOut,
    ResponseOut,
    ResponseSubmit,
)
from app.schemas.common import PaginationMeta
from app.services import attempt_service, quiz_service, statistics_service


router = APIRouter(tags=['attempts'])


def resolve_user_id(actor: Actor, user_id: UUID | None) -> UUID:
    if user_id is None or user_id == actor.user_id:
        return actor.user_id
    if not actor.is_staff:
        raise ForbiddenError("Not allowed to read another user's attempts", user_id=user_id)
    return user_id


@router.post('/quizzes/{quiz_id}/attempts', response_model=AttemptStartOut)
def start_attempt(
    quiz_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> AttemptStartOut:
    attempt = attempt_service.start_attempt(db, quiz_id=quiz_id, user_id=actor.user_id)
    db.commit()
    return AttemptStartOut(
        attempt=AttemptOut.model_validate(attempt),
        deadline=attempt_service.attempt_deadline(attempt),
        questions=attempt_service.build_attempt_questions(attempt),
    )


@router.get('/quizzes/{quiz_id}/attempts', response_model=AttemptListResponse)
def list_user_attempts(
    quiz_id: UUID,
    user_id: UUID | None = Query(default=None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> AttemptListResponse:
    effective_user_id = resolve_user_id(actor, user_id)
    quiz = quiz_service.get_quiz(db, quiz_id)
    items, total = attempt_service.list_user_attempts(
        db,
        quiz_id=quiz.id,
        user_id=effective_user_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return AttemptListResponse(
        items=[AttemptOut.model_validate(item) for item in items],
        meta=PaginationMeta(page=pagination.page, page_size=pagination.page_size, total=total),
    )


@router.get('/quizzes/{quiz_id}/attempts/best', response_model=BestAttemptOut)
def get_best_attempt(
    quiz_id: UUID,
    user_id: UUID | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> BestAttemptOut:
    effective_user_id = resolve_user_id(actor, user_id)
    quiz = quiz_service.get_quiz(db, quiz_id)
    attempt = statistics_service.get_best_attempt(db, quiz_id=quiz.id, user_id=effective_user_id)
    return BestAttemptOut(attempt=AttemptOut.model_validate(attempt) if attempt else None)


@router.post('/attempts/expire-overdue', response_model=ExpireOverdueOut)
def expire_overdue_attempts(
    db: Session = Depends(get_db),
    _: Actor = Depends(require_roles('admin')),
) -> ExpireOverdueOut:
    expired_count = attempt_service.expire_overdue_attempts(db)
    db.commit()
    return ExpireOverdueOut(expired_count=expired_count)


@router.get('/attempts/{attempt_id}', response_model=AttemptDetailOut)
def get_attempt(
    attempt_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> AttemptDetailOut:
    attempt = attempt_service.get_attempt(db, attempt_id)
    attempt_service.ensure_can_access(attempt, actor)
    detail = attempt_service.build_attempt_detail(attempt, actor)
    return AttemptDetailOut(
        attempt=AttemptOut.model_validate(detail['attempt']),
        deadline=detail['deadline'],
        results_visible=detail['results_visible'],
        questions=detail['questions'],
    )


@router.put('/attempts/{attempt_id}/responses', response_model=ResponseOut)
def submit_response(
    attempt_id: UUID,
    payload: ResponseSubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ResponseOut:
    attempt = attempt_service.get_attempt(db, attempt_id)
    if attempt.user_id != actor.user_id:
        raise ForbiddenError('Only the attempt owner can answer', attempt_id=attempt_id)

    try:
        response = attempt_service.submit_response(
            db,
            attempt_id=attempt_id,
            question_id=payload.question_id,
            selected_option_ids=payload.selected_option_ids,
            actor_user_id=actor.user_id,
        )
    except AttemptExpiredError:
        # Keep the expiry finalization even though the response is rejected.
        db.commit()
        raise
    db.commit()
    return ResponseOut.model_validate(response)


@router.post('/attempts/{attempt_id}/complete', response_model=AttemptResultOut)
def complete_attempt(
    attempt_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> AttemptResultOut:
    attempt = attempt_service.get_attempt(db, attempt_id)
    attempt_service.ensure_can_access(attempt, actor)

    attempt = attempt_service.complete_attempt(db, attempt_id=attempt_id, actor_user_id=actor.user_id)
    db.commit()
    return AttemptResultOut(
        attempt=AttemptOut.model_validate(attempt),
        correct_count=len([response for response in attempt.responses if response.is_correct]),
        total_questions=len(attempt.question_order or []),
    )
