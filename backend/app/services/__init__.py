from app.services import (
    attempt_service,
    quiz_service,
    response_validator,
    scoring_service,
    statistics_service,
)

__all__ = [
    'attempt_service',
    'quiz_service',
    'response_validator',
    'scoring_service',
    'statistics_service',
]
