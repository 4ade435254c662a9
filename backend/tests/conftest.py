import os
import tempfile
import uuid
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL') or 'sqlite:///' + os.path.join(
    tempfile.gettempdir(), f'quiz_attempt_engine_test_{os.getpid()}.db'
)

os.environ.setdefault('DATABASE_URL', TEST_DATABASE_URL)
os.environ.setdefault('JWT_SECRET_KEY', 'test-access-secret-32-chars-min-0001')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('CORS_ORIGINS', 'http://localhost:3001')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import build_engine, build_session_factory, get_db
from app.main import app
from app.models.quiz import Quiz
from app.services import quiz_service


engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = build_session_factory(engine)

INSTRUCTOR_ID = uuid.UUID('00000000-0000-4000-8000-000000000001')
ADMIN_ID = uuid.UUID('00000000-0000-4000-8000-000000000002')
STUDENT_ID = uuid.UUID('00000000-0000-4000-8000-000000000003')
OTHER_STUDENT_ID = uuid.UUID('00000000-0000-4000-8000-000000000004')
COURSE_ID = uuid.UUID('00000000-0000-4000-8000-0000000000c1')


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def _override_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as api_client:
        yield api_client

    app.dependency_overrides.clear()


def auth_header(user_id: uuid.UUID, role: str = 'student') -> dict[str, str]:
    return {'Authorization': f'Bearer {create_access_token(str(user_id), role)}'}


def question_payload(
    question_type: str = 'multiple_choice',
    *,
    text: str = 'Which option is correct?',
    points: float = 1,
    correct: tuple[int, ...] = (0,),
    option_count: int = 3,
    explanation: str | None = None,
) -> dict[str, Any]:
    if question_type == 'true_false':
        option_count = 2
    return {
        'question_text': text,
        'question_type': question_type,
        'points': points,
        'explanation': explanation,
        'options': [
            {'option_text': f'Option {idx + 1}', 'is_correct': idx in correct, 'explanation': None}
            for idx in range(option_count)
        ],
    }


def create_quiz(
    db: Session,
    *,
    questions: list[dict[str, Any]] | None = None,
    **overrides: Any,
) -> Quiz:
    payload: dict[str, Any] = {
        'course_id': COURSE_ID,
        'title': 'Python Basics Checkpoint',
        'description': 'Short checkpoint quiz',
        'time_limit_minutes': None,
        'max_attempts': None,
        'passing_score': 70,
        'randomize_questions': False,
        'show_results_immediately': True,
        'allow_review': True,
    }
    payload.update(overrides)
    quiz = quiz_service.create_quiz(db, payload=payload, actor_user_id=INSTRUCTOR_ID)
    for question in questions if questions is not None else [question_payload()]:
        quiz_service.add_question(db, quiz_id=quiz.id, payload=question, actor_user_id=INSTRUCTOR_ID)
    db.commit()
    return quiz_service.get_quiz(db, quiz.id)


def option_ids(quiz: Quiz, question_index: int, *option_indexes: int) -> list[str]:
    question = quiz.questions[question_index]
    return [str(question.options[idx].id) for idx in option_indexes]
