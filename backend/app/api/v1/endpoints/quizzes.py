from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, require_roles
from app.core.security import Actor
from app.db.session import get_db
from app.schemas.quiz import (
    QuestionCreate,
    QuestionOut,
    QuestionUpdate,
    QuizCreate,
    QuizOut,
    QuizPublicOut,
    QuizUpdate,
)
from app.services import quiz_service


router = APIRouter(prefix='/quizzes', tags=['quizzes'])


@router.post('', response_model=QuizOut, status_code=status.HTTP_201_CREATED)
def create_quiz(
    payload: QuizCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuizOut:
    quiz = quiz_service.create_quiz(db, payload=payload.model_dump(), actor_user_id=actor.user_id)
    db.commit()
    return QuizOut.model_validate(quiz)


@router.post('/{quiz_id}/questions', response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
def add_question(
    quiz_id: UUID,
    payload: QuestionCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuestionOut:
    question = quiz_service.add_question(
        db, quiz_id=quiz_id, payload=payload.model_dump(), actor_user_id=actor.user_id
    )
    db.commit()
    return QuestionOut.model_validate(question)


@router.get('/{quiz_id}', response_model=QuizPublicOut)
def get_quiz(
    quiz_id: UUID,
    db: Session = Depends(get_db),
    _: Actor = Depends(get_current_actor),
) -> QuizPublicOut:
    quiz = quiz_service.get_quiz(db, quiz_id, active_only=True)
    return QuizPublicOut.model_validate(quiz)


@router.get('/{quiz_id}/definition', response_model=QuizOut)
def get_quiz_definition(
    quiz_id: UUID,
    db: Session = Depends(get_db),
    _: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuizOut:
    return QuizOut.model_validate(quiz_service.get_quiz(db, quiz_id))


@router.patch('/{quiz_id}', response_model=QuizOut)
def update_quiz(
    quiz_id: UUID,
    payload: QuizUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuizOut:
    quiz = quiz_service.update_quiz(
        db, quiz_id=quiz_id, payload=payload.model_dump(exclude_unset=True), actor_user_id=actor.user_id
    )
    db.commit()
    return QuizOut.model_validate(quiz)


@router.patch('/{quiz_id}/questions/{question_id}', response_model=QuestionOut)
def update_question(
    quiz_id: UUID,
    question_id: UUID,
    payload: QuestionUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles('instructor', 'admin')),
) -> QuestionOut:
    question = quiz_service.update_question(
        db,
        quiz_id=quiz_id,
        question_id=question_id,
        payload=payload.model_dump(exclude_unset=True),
        actor_user_id=actor.user_id,
    )
    db.commit()
    return QuestionOut.model_validate(question)


@router.delete('/{quiz_id}/questions/{question_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    quiz_id: UUID,
    question_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles('instructor', 'admin')),
) -> Response:
    quiz_service.delete_question(db, quiz_id=quiz_id, question_id=question_id, actor_user_id=actor.user_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
