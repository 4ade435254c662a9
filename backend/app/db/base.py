from app.db.base_class import Base
from app.models.attempt import QuizAttempt, QuizResponse
from app.models.quiz import QuestionOption, Quiz, QuizQuestion


__all__ = [
    'Base',
    'QuestionOption',
    'Quiz',
    'QuizAttempt',
    'QuizQuestion',
    'QuizResponse',
]
