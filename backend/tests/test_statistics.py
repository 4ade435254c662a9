from datetime import UTC, datetime, timedelta
import uuid

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.attempt import QuizAttempt
from app.services import attempt_service, statistics_service
from app.services.statistics_service import score_histogram
from tests.conftest import OTHER_STUDENT_ID, STUDENT_ID, create_quiz, option_ids, question_payload


def _quiz(db: Session):
    return create_quiz(
        db,
        questions=[
            question_payload('multiple_choice', text='Which keyword defines a function?', points=10),
            question_payload('multiple_select', text='Which types are immutable?', points=10, correct=(0, 1)),
        ],
    )


def _finish(db: Session, quiz, user_id: uuid.UUID, answers: dict[int, tuple[int, ...]]):
    attempt = attempt_service.start_attempt(db, quiz_id=quiz.id, user_id=user_id)
    for question_index, selection in answers.items():
        attempt_service.submit_response(
            db,
            attempt_id=attempt.id,
            question_id=quiz.questions[question_index].id,
            selected_option_ids=option_ids(quiz, question_index, *selection),
            actor_user_id=user_id,
        )
    completed = attempt_service.complete_attempt(db, attempt_id=attempt.id, actor_user_id=user_id)
    db.commit()
    return completed


def test_score_histogram_buckets() -> None:
    buckets = score_histogram([0, 9.99, 10, 55, 100], bucket_width=10)

    assert len(buckets) == 10
    assert [bucket['count'] for bucket in buckets] == [2, 1, 0, 0, 0, 1, 0, 0, 0, 1]
    assert buckets[-1] == {'lower': 90.0, 'upper': 100.0, 'count': 1}

    quarters = score_histogram([25, 100], bucket_width=25)
    assert [bucket['count'] for bucket in quarters] == [0, 1, 0, 1]


def test_quiz_statistics_aggregate_terminal_attempts(db_session: Session) -> None:
    quiz = _quiz(db_session)
    third_student = uuid.uuid4()

    _finish(db_session, quiz, STUDENT_ID, {0: (0,), 1: (0, 1)})
    _finish(db_session, quiz, OTHER_STUDENT_ID, {0: (0,), 1: (0,)})
    _finish(db_session, quiz, third_student, {})
    attempt_service.start_attempt(db_session, quiz_id=quiz.id, user_id=uuid.uuid4())
    db_session.commit()

    stats = statistics_service.get_quiz_statistics(db_session, quiz_id=quiz.id)

    assert stats['attempt_count'] == 3
    assert stats['completed_count'] == 3
    assert stats['expired_count'] == 0
    assert stats['passed_count'] == 1
    assert stats['failed_count'] == 2
    assert stats['average_score_percent'] == 50.0
    assert stats['pass_rate'] == 0.3333

    counts = [bucket['count'] for bucket in stats['score_distribution']]
    assert counts[0] == 1
    assert counts[5] == 1
    assert counts[9] == 1

    rates = stats['question_correct_rates']
    assert [row['question_id'] for row in rates] == [str(quiz.questions[1].id), str(quiz.questions[0].id)]
    assert rates[0]['correct_count'] == 1
    assert rates[0]['correct_rate'] == 0.3333
    assert rates[1]['correct_rate'] == 0.6667
    assert all(row['attempt_count'] == 3 for row in rates)


def test_quiz_statistics_without_attempts(db_session: Session) -> None:
    quiz = _quiz(db_session)

    stats = statistics_service.get_quiz_statistics(db_session, quiz_id=quiz.id)

    assert stats['attempt_count'] == 0
    assert stats['average_score_percent'] is None
    assert stats['pass_rate'] is None
    assert all(row['correct_rate'] == 0.0 for row in stats['question_correct_rates'])


def test_quiz_statistics_unknown_quiz(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        statistics_service.get_quiz_statistics(db_session, quiz_id=uuid.uuid4())


def _set_completed_at(db: Session, attempt_id, completed_at: datetime) -> None:
    db.execute(update(QuizAttempt).where(QuizAttempt.id == attempt_id).values(completed_at=completed_at))
    db.commit()


def test_best_attempt_prefers_highest_score_then_earliest(db_session: Session) -> None:
    quiz = _quiz(db_session)

    first_perfect = _finish(db_session, quiz, STUDENT_ID, {0: (0,), 1: (0, 1)})
    second_perfect = _finish(db_session, quiz, STUDENT_ID, {0: (0,), 1: (0, 1)})
    _finish(db_session, quiz, STUDENT_ID, {0: (0,)})

    finished = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)
    _set_completed_at(db_session, first_perfect.id, finished)
    _set_completed_at(db_session, second_perfect.id, finished - timedelta(minutes=5))

    best = statistics_service.get_best_attempt(db_session, quiz_id=quiz.id, user_id=STUDENT_ID)
    assert best.id == second_perfect.id
    assert best.attempt_number == 2

    _set_completed_at(db_session, second_perfect.id, finished)

    best = statistics_service.get_best_attempt(db_session, quiz_id=quiz.id, user_id=STUDENT_ID)
    assert best.id == first_perfect.id

    _finish(db_session, quiz, OTHER_STUDENT_ID, {0: (0,)})
    improved = _finish(db_session, quiz, OTHER_STUDENT_ID, {0: (0,), 1: (0, 1)})

    best = statistics_service.get_best_attempt(db_session, quiz_id=quiz.id, user_id=OTHER_STUDENT_ID)
    assert best.id == improved.id


def test_best_attempt_ignores_in_progress(db_session: Session) -> None:
    quiz = _quiz(db_session)
    attempt_service.start_attempt(db_session, quiz_id=quiz.id, user_id=STUDENT_ID)
    db_session.commit()

    assert statistics_service.get_best_attempt(db_session, quiz_id=quiz.id, user_id=STUDENT_ID) is None


def test_user_statistics(db_session: Session) -> None:
    quiz = _quiz(db_session)
    _finish(db_session, quiz, STUDENT_ID, {0: (0,), 1: (0, 1)})
    _finish(db_session, quiz, STUDENT_ID, {0: (1,)})
    attempt_service.start_attempt(db_session, quiz_id=quiz.id, user_id=STUDENT_ID)
    db_session.commit()

    stats = statistics_service.get_user_statistics(db_session, user_id=STUDENT_ID)

    assert stats['total_attempts'] == 3
    assert stats['terminal_attempts'] == 2
    assert stats['passed_attempts'] == 1
    assert stats['failed_attempts'] == 1
    assert stats['pass_rate'] == 0.5
    assert stats['average_score_percent'] == 50.0


def test_quiz_results_are_ranked_by_score(db_session: Session) -> None:
    quiz = _quiz(db_session)
    low = _finish(db_session, quiz, STUDENT_ID, {})
    high = _finish(db_session, quiz, OTHER_STUDENT_ID, {0: (0,), 1: (0, 1)})

    items, total = statistics_service.list_quiz_results(db_session, quiz_id=quiz.id, page=1, page_size=10)

    assert total == 2
    assert [item.id for item in items] == [high.id, low.id]

    items, total = statistics_service.list_quiz_results(db_session, quiz_id=quiz.id, page=2, page_size=1)
    assert total == 2
    assert [item.id for item in items] == [low.id]
