from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import Pagination, get_current_actor, require_roles
from app.api.v1.endpoints.attempts import resolve_user_id
from app.core.security import Actor
from app.db.session import get_db
from app.schemas.attempt import AttemptListResponse, AttemptOut
from app.schemas.common import PaginationMeta
from app.schemas.statistics import QuizStatisticsOut, UserStatisticsOut
from app.services import statistics_service


router = APIRouter(tags=['statistics'])


@router.get('/quizzes/{quiz_id}/statistics', response_model=QuizStatisticsOut)
def get_quiz_statistics(
    quiz_id: UUID,
    db: Session = Depends(get_db),
    _: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuizStatisticsOut:
    return QuizStatisticsOut(**statistics_service.get_quiz_statistics(db, quiz_id=quiz_id))


@router.get('/quizzes/{quiz_id}/results', response_model=AttemptListResponse)
def list_quiz_results(
    quiz_id: UUID,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _: Actor = Depends(require_roles('instructor', 'admin')),
) -> AttemptListResponse:
    items, total = statistics_service.list_quiz_results(
        db, quiz_id=quiz_id, page=pagination.page, page_size=pagination.page_size
    )
    return AttemptListResponse(
        items=[AttemptOut.model_validate(item) for item in items],
        meta=PaginationMeta(page=pagination.page, page_size=pagination.page_size, total=total),
    )


@router.get('/quizzes/{quiz_id}/results/export', response_class=StreamingResponse)
def export_quiz_results(
    quiz_id: UUID,
    db: Session = Depends(get_db),
    _: Actor = Depends(require_roles('instructor', 'admin')),
) -> StreamingResponse:
    content = statistics_service.export_quiz_results_csv(db, quiz_id=quiz_id)
    return StreamingResponse(
        iter([content]),
        media_type='text/csv',
        headers={'Content-Disposition': f'attachment; filename="quiz-{quiz_id}-results.csv"'},
    )


@router.get('/users/{user_id}/quiz-statistics', response_model=UserStatisticsOut)
def get_user_statistics(
    user_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> UserStatisticsOut:
    effective_user_id = resolve_user_id(actor, user_id)
    return UserStatisticsOut(**statistics_service.get_user_statistics(db, user_id=effective_user_id))
