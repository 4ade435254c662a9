from typing import Any
from uuid import UUID

from fastapi import status


class QuizEngineError(Exception):
    """Base for every error the quiz engine raises to its callers.

    Carries a stable ``code`` and a ``context`` dict (attempt id, quiz id,
    reason, ...) so the boundary can render a typed response and the caller
    can correct its request without guessing.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = 'quiz_engine_error'
    default_detail: str = 'Quiz engine error'

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        self.detail = detail or self.default_detail
        self.context = {key: _context_value(value) for key, value in context.items() if value is not None}
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        return {'detail': self.detail, 'code': self.code, 'context': self.context}


class NotFoundError(QuizEngineError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_detail = 'Not found'


class ForbiddenError(QuizEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'forbidden'
    default_detail = 'Forbidden'


class AttemptNotActiveError(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    code = 'attempt_not_active'
    default_detail = 'Attempt is not in progress'


class AttemptExpiredError(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    code = 'attempt_expired'
    default_detail = 'Attempt time limit has passed'


class AttemptLimitExceededError(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    code = 'attempt_limit_exceeded'
    default_detail = 'Maximum attempts reached for this quiz'


class InvalidResponseShapeError(QuizEngineError):
    status_code = 422
    code = 'invalid_response_shape'
    default_detail = 'Answer does not match the question type'


class InvalidRequestError(QuizEngineError):
    status_code = 422
    code = 'validation_error'
    default_detail = 'Invalid request'


def _context_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_context_value(item) for item in value]
    return value
