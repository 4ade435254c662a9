from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from app.core.config import settings
from app.models.constants import ROLE_VALUES, STAFF_ROLES


class TokenDecodeError(Exception):
    pass


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as asserted by the auth provider's token."""

    user_id: UUID
    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def _create_token(payload: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    data = payload.copy()
    expire = datetime.now(UTC) + expires_delta
    data.update({'exp': expire})
    return jwt.encode(data, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: str, role: str) -> str:
    # Tokens are normally issued by the auth service; kept for local runs and tests.
    return _create_token(
        payload={'sub': subject, 'role': role, 'token_type': 'access'},
        secret=settings.JWT_SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise TokenDecodeError('Invalid access token') from exc

    if payload.get('token_type') != 'access':
        raise TokenDecodeError('Unexpected token type for access token')
    return payload


def actor_from_token(token: str) -> Actor:
    payload = decode_access_token(token)
    subject = payload.get('sub')
    role = payload.get('role')
    if not subject:
        raise TokenDecodeError('Invalid access token subject')
    if role not in ROLE_VALUES:
        raise TokenDecodeError('Invalid access token role')
    try:
        user_id = UUID(subject)
    except ValueError as exc:
        raise TokenDecodeError('Invalid access token subject') from exc
    return Actor(user_id=user_id, role=role)
