import time
import uuid
from datetime import datetime, timedelta
from typing import NamedTuple, Optional, Tuple

import jwt
from passlib.context import CryptContext

from .config import get_settings

# pbkdf2_sha256 for new hashes; bcrypt kept so hashes from the legacy database still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class CurrentUser(NamedTuple):
    """The authenticated principal, as carried in token claims."""
    id: int
    email: Optional[str]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_claims(cls, claims: dict) -> "CurrentUser":
        return cls(id=int(claims["sub"]), email=claims.get("email"), role=claims.get("role", "user"))


def _claims(user_id: int, email: str, role: str, ttl: int) -> dict:
    now = int(time.time())
    return {"sub": str(user_id), "email": email, "role": role, "iat": now, "exp": now + ttl}


def create_access_token(user_id: int, email: str, role: str, expires_delta: Optional[int] = None) -> str:
    settings = get_settings()
    payload = _claims(user_id, email, role, expires_delta or settings.access_token_ttl)
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def create_refresh_token(user_id: int, email: str, role: str, expires_delta: Optional[int] = None) -> Tuple[str, datetime]:
    """Return the signed refresh token and the local time it expires at."""
    settings = get_settings()
    ttl = expires_delta or settings.refresh_token_ttl
    payload = _claims(user_id, email, role, ttl)
    # tokens are primary keys; two logins in the same second must still differ
    payload["jti"] = uuid.uuid4().hex
    token = jwt.encode(payload, settings.refresh_token_secret, algorithm=ALGORITHM)
    return token, datetime.now() + timedelta(seconds=ttl)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGORITHM])


def decode_refresh_token(token: str) -> dict:
    return jwt.decode(token, get_settings().refresh_token_secret, algorithms=[ALGORITHM])


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def dummy_verify() -> None:
    """Spend the same time as a real verify when there is no user to check against."""
    pwd_context.dummy_verify()
