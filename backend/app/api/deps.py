from collections.abc import Callable

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer

from app.core.exceptions import ForbiddenError
from app.core.security import Actor, TokenDecodeError, actor_from_token


# Tokens are issued by the auth service; the URL is only advertised in OpenAPI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl='/api/v1/auth/token')


def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    try:
        return actor_from_token(token)
    except TokenDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid access token') from exc


def require_roles(*required_roles: str) -> Callable:
    required_set = set(required_roles)

    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role == 'admin':
            return actor

        if actor.role not in required_set:
            raise ForbiddenError(
                'Insufficient role permissions',
                role=actor.role,
                required_roles=sorted(required_set),
            )
        return actor

    return role_checker


class Pagination:
    def __init__(
        self,
        page: int = Query(default=1, ge=1),
        page_size: int = Query(default=20, ge=1, le=100),
    ) -> None:
        self.page = page
        self.page_size = page_size
