import logging
from datetime import datetime
from typing import NamedTuple, Optional

import jwt
from sqlalchemy.orm import Session

from .. import models
from ..auth import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    dummy_verify,
    verify_password,
)
from ..db import transaction
from ..errors import AuthError, InvalidTokenError, RevokedError, ValidationError
from ..utils import is_valid_email

logger = logging.getLogger(__name__)


class LoginResult(NamedTuple):
    user_id: int
    role: str
    access_token: str
    refresh_token: str


def login(db: Session, email: Optional[str], password: Optional[str]) -> LoginResult:
    email = (email or "").strip()
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        # keep the response time of an unknown email close to a wrong password
        dummy_verify()
        raise AuthError("Invalid email or password")
    if not user.password_hash or not verify_password(password, user.password_hash):
        raise AuthError("Invalid email or password")

    access = create_access_token(user.id, user.email, user.role)
    refresh, expires_at = create_refresh_token(user.id, user.email, user.role)
    with transaction(db):
        db.add(models.RefreshToken(token=refresh, user_id=user.id, expires_at=expires_at))
    logger.info("User %s logged in", user.id)
    return LoginResult(user.id, user.role, access, refresh)


def refresh_access_token(db: Session, token: Optional[str]) -> str:
    """Mint a new access token from a stored, unexpired refresh token."""
    if not token:
        raise AuthError("Refresh token required")
    try:
        claims = decode_refresh_token(token)
    except jwt.PyJWTError as e:
        logger.info("Rejected refresh token: %s", e)
        raise InvalidTokenError("Invalid refresh token") from e

    stored = db.get(models.RefreshToken, token)
    if stored is None:
        raise RevokedError("Refresh token not found (revoked)")
    # the signature may outlive the row's own deadline if the TTL was shortened
    if stored.expires_at <= datetime.now():
        raise InvalidTokenError("Invalid refresh token")

    return create_access_token(int(claims["sub"]), claims.get("email"), claims.get("role", models.Role.USER.value))


def logout(db: Session, token: Optional[str]) -> bool:
    """Revoke a refresh token. Unknown tokens are not an error; returns whether a row was removed."""
    if not token:
        raise ValidationError("Token required")
    with transaction(db):
        removed = db.query(models.RefreshToken).filter(models.RefreshToken.token == token).delete()
    if removed:
        logger.info("Refresh token revoked")
    return bool(removed)


def purge_expired_tokens(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.now()
    with transaction(db):
        removed = db.query(models.RefreshToken).filter(models.RefreshToken.expires_at <= now).delete()
    if removed:
        logger.info("Purged %d expired refresh tokens", removed)
    return removed
