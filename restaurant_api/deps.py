"""Request dependencies: database session, collaborators and the authenticated caller."""
import logging
from typing import Callable, Iterator, Optional

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth import ACCESS_COOKIE, CurrentUser, decode_access_token
from .errors import AuthError, ForbiddenError, InvalidTokenError
from .events import EventBus
from .storage import ImageStore

logger = logging.getLogger(__name__)


def get_db(request: Request) -> Iterator[Session]:
    with request.app.state.database.session() as db:
        yield db


def get_events(request: Request) -> EventBus:
    return request.app.state.events


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.images


def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(None, 1)[1].strip() or None
    return None


def get_current_user(request: Request) -> CurrentUser:
    token = _extract_token(request)
    if not token:
        raise AuthError("Access denied. No token provided.")
    try:
        claims = decode_access_token(token)
        return CurrentUser.from_claims(claims)
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        logger.info("Rejected access token: %s", e)
        raise InvalidTokenError("Invalid token.") from e


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: pass through the caller only if their role is one of ``roles``."""
    allowed = set(roles)

    def checker(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current.role not in allowed:
            raise ForbiddenError("Access denied. Insufficient permissions.")
        return current

    return checker


def ensure_owner_or_admin(current: CurrentUser, owner_id: int) -> None:
    if not current.is_admin and current.id != owner_id:
        raise ForbiddenError("Access denied. Insufficient permissions.")
