from __future__ import annotations

import csv
import io
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.models.attempt import QuizAttempt
from app.models.constants import ATTEMPT_STATUS_COMPLETED, ATTEMPT_STATUS_EXPIRED, TERMINAL_ATTEMPT_STATUSES
from app.services import quiz_service
from app.services.attempt_service import as_utc


def _terminal_attempts_query(quiz_id: UUID):
    return select(QuizAttempt).where(
        QuizAttempt.quiz_id == quiz_id,
        QuizAttempt.status.in_(TERMINAL_ATTEMPT_STATUSES),
    )


def score_histogram(scores: list[float], *, bucket_width: int | None = None) -> list[dict[str, float | int]]:
    width = bucket_width or settings.SCORE_HISTOGRAM_BUCKET_WIDTH
    bucket_count = 100 // width
    counts = [0] * bucket_count
    for score in scores:
        index = min(int(max(score, 0.0) // width), bucket_count - 1)
        counts[index] += 1
    return [
        {'lower': float(idx * width), 'upper': float((idx + 1) * width), 'count': count}
        for idx, count in enumerate(counts)
    ]


def get_quiz_statistics(db: Session, *, quiz_id: UUID) -> dict[str, object]:
    quiz = quiz_service.get_quiz(db, quiz_id)
    attempts = db.scalars(
        _terminal_attempts_query(quiz.id)
        .options(selectinload(QuizAttempt.responses))
        .execution_options(populate_existing=True)
    ).all()

    attempt_count = len(attempts)
    completed_count = sum(1 for attempt in attempts if attempt.status == ATTEMPT_STATUS_COMPLETED)
    expired_count = sum(1 for attempt in attempts if attempt.status == ATTEMPT_STATUS_EXPIRED)
    passed_count = sum(1 for attempt in attempts if attempt.passed)
    scores = [attempt.score_percent for attempt in attempts if attempt.score_percent is not None]

    # question id -> [question_text, attempts that contained it, fully correct answers]
    per_question: dict[str, list] = {}
    for question in quiz.questions:
        per_question[str(question.id)] = [question.question_text, 0, 0]

    for attempt in attempts:
        correct_ids = {str(response.question_id) for response in attempt.responses if response.is_correct}
        for question in (attempt.quiz_snapshot or {}).get('questions', []):
            entry = per_question.setdefault(question['id'], [question['question_text'], 0, 0])
            entry[1] += 1
            if question['id'] in correct_ids:
                entry[2] += 1

    question_correct_rates = [
        {
            'question_id': question_id,
            'question_text': text,
            'attempt_count': seen,
            'correct_count': correct,
            'correct_rate': round(correct / seen, 4) if seen else 0.0,
        }
        for question_id, (text, seen, correct) in per_question.items()
    ]
    # Weakest questions first.
    question_correct_rates.sort(key=lambda row: (row['correct_rate'], -row['attempt_count']))

    return {
        'quiz_id': quiz.id,
        'attempt_count': attempt_count,
        'completed_count': completed_count,
        'expired_count': expired_count,
        'passed_count': passed_count,
        'failed_count': attempt_count - passed_count,
        'average_score_percent': round(sum(scores) / len(scores), 2) if scores else None,
        'pass_rate': round(passed_count / attempt_count, 4) if attempt_count else None,
        'score_distribution': score_histogram(scores),
        'question_correct_rates': question_correct_rates,
    }


def get_best_attempt(db: Session, *, quiz_id: UUID, user_id: UUID) -> QuizAttempt | None:
    attempts = db.scalars(_terminal_attempts_query(quiz_id).where(QuizAttempt.user_id == user_id)).all()
    if not attempts:
        return None
    # Highest score wins; among equal scores the first to finish wins.
    return min(
        attempts,
        key=lambda attempt: (
            -(attempt.score_percent or 0.0),
            as_utc(attempt.completed_at) if attempt.completed_at else as_utc(attempt.started_at),
            attempt.attempt_number,
        ),
    )


def get_user_statistics(db: Session, *, user_id: UUID) -> dict[str, object]:
    total_attempts = int(
        db.scalar(select(func.count()).select_from(QuizAttempt).where(QuizAttempt.user_id == user_id)) or 0
    )
    terminal = db.execute(
        select(QuizAttempt.score_percent, QuizAttempt.passed).where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.status.in_(TERMINAL_ATTEMPT_STATUSES),
        )
    ).all()

    terminal_attempts = len(terminal)
    passed_attempts = sum(1 for _, passed in terminal if passed)
    scores = [score for score, _ in terminal if score is not None]

    return {
        'user_id': user_id,
        'total_attempts': total_attempts,
        'terminal_attempts': terminal_attempts,
        'passed_attempts': passed_attempts,
        'failed_attempts': terminal_attempts - passed_attempts,
        'pass_rate': round(passed_attempts / terminal_attempts, 4) if terminal_attempts else None,
        'average_score_percent': round(sum(scores) / len(scores), 2) if scores else None,
    }


RESULT_EXPORT_FIELDS = (
    'attempt_id',
    'user_id',
    'attempt_number',
    'status',
    'started_at',
    'completed_at',
    'time_spent_seconds',
    'score',
    'max_score',
    'score_percent',
    'passed',
)


def _ranked_results_query(quiz_id: UUID):
    return _terminal_attempts_query(quiz_id).order_by(
        QuizAttempt.score_percent.desc(), QuizAttempt.completed_at.asc(), QuizAttempt.attempt_number.asc()
    )


def list_quiz_results(
    db: Session,
    *,
    quiz_id: UUID,
    page: int,
    page_size: int,
) -> tuple[list[QuizAttempt], int]:
    quiz = quiz_service.get_quiz(db, quiz_id)
    total = db.scalar(select(func.count()).select_from(_terminal_attempts_query(quiz.id).subquery()))
    items = db.scalars(
        _ranked_results_query(quiz.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()
    return list(items), int(total or 0)


def export_quiz_results_csv(db: Session, *, quiz_id: UUID) -> str:
    """Every terminal attempt of a quiz as CSV, ranked like ``list_quiz_results``."""
    quiz = quiz_service.get_quiz(db, quiz_id)
    attempts = db.scalars(_ranked_results_query(quiz.id)).all()

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=RESULT_EXPORT_FIELDS)
    writer.writeheader()
    for attempt in attempts:
        writer.writerow(
            {
                'attempt_id': attempt.id,
                'user_id': attempt.user_id,
                'attempt_number': attempt.attempt_number,
                'status': attempt.status,
                'started_at': as_utc(attempt.started_at).isoformat(),
                'completed_at': as_utc(attempt.completed_at).isoformat() if attempt.completed_at else '',
                'time_spent_seconds': attempt.time_spent_seconds,
                'score': attempt.score,
                'max_score': attempt.max_score,
                'score_percent': attempt.score_percent,
                'passed': attempt.passed,
            }
        )
    return buffer.getvalue()
