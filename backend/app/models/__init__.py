from app.models.attempt import QuizAttempt, QuizResponse
from app.models.quiz import QuestionOption, Quiz, QuizQuestion

__all__ = [
    'QuestionOption',
    'Quiz',
    'QuizAttempt',
    'QuizQuestion',
    'QuizResponse',
]
