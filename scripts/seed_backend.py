#!/usr/bin/env python3
import argparse
import sys
import uuid
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / 'backend'))

from app.core.logging import configure_logging  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.services import quiz_service  # noqa: E402


DEMO_COURSE_ID = uuid.UUID('6f1c1a52-7d0e-4c52-9c1e-5d2b1f0a0001')
DEMO_INSTRUCTOR_ID = uuid.UUID('6f1c1a52-7d0e-4c52-9c1e-5d2b1f0a0002')

DEMO_QUESTIONS = [
    {
        'question_text': 'Which keyword defines a function in Python?',
        'question_type': 'multiple_choice',
        'points': 5,
        'explanation': 'Functions are introduced with def.',
        'options': [
            {'option_text': 'func', 'is_correct': False},
            {'option_text': 'def', 'is_correct': True},
            {'option_text': 'lambda', 'is_correct': False},
        ],
    },
    {
        'question_text': 'Which of these built-in types are immutable?',
        'question_type': 'multiple_select',
        'points': 10,
        'explanation': 'Tuples and frozensets cannot be changed after creation.',
        'options': [
            {'option_text': 'tuple', 'is_correct': True},
            {'option_text': 'list', 'is_correct': False},
            {'option_text': 'frozenset', 'is_correct': True},
            {'option_text': 'dict', 'is_correct': False},
        ],
    },
    {
        'question_text': 'A Python list can hold values of different types.',
        'question_type': 'true_false',
        'points': 5,
        'explanation': None,
        'options': [
            {'option_text': 'True', 'is_correct': True},
            {'option_text': 'False', 'is_correct': False},
        ],
    },
]


def main() -> int:
    parser = argparse.ArgumentParser(description='Create a demo quiz for local development.')
    parser.add_argument('--time-limit', type=int, default=15, help='Time limit in minutes (0 for none).')
    parser.add_argument('--max-attempts', type=int, default=3, help='Attempt limit (0 for unlimited).')
    args = parser.parse_args()

    configure_logging()

    with SessionLocal() as db:
        quiz = quiz_service.create_quiz(
            db,
            payload={
                'course_id': DEMO_COURSE_ID,
                'title': 'Python Fundamentals Checkpoint',
                'description': 'Demo quiz seeded for local development.',
                'time_limit_minutes': args.time_limit or None,
                'max_attempts': args.max_attempts or None,
                'passing_score': 70,
                'randomize_questions': True,
            },
            actor_user_id=DEMO_INSTRUCTOR_ID,
        )
        for question in DEMO_QUESTIONS:
            quiz_service.add_question(db, quiz_id=quiz.id, payload=question, actor_user_id=DEMO_INSTRUCTOR_ID)
        db.commit()

    print(f'Seeded demo quiz {quiz.id} with {len(DEMO_QUESTIONS)} questions.')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
