from app.schemas.attempt import (
    AttemptDetailOut,
    AttemptListResponse,
    AttemptOut,
    AttemptResultOut,
    AttemptStartOut,
    BestAttemptOut,
    ResponseOut,
    ResponseSubmit,
)
from app.schemas.quiz import QuestionCreate, QuestionOut, QuizCreate, QuizOut, QuizPublicOut
from app.schemas.statistics import QuizStatisticsOut, UserStatisticsOut

__all__ = [
    'AttemptDetailOut',
    'AttemptListResponse',
    'AttemptOut',
    'AttemptResultOut',
    'AttemptStartOut',
    'BestAttemptOut',
    'QuestionCreate',
    'QuestionOut',
    'QuizCreate',
    'QuizOut',
    'QuizPublicOut',
    'QuizStatisticsOut',
    'ResponseOut',
    'ResponseSubmit',
    'UserStatisticsOut',
]
