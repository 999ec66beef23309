"""Runtime configuration for the app (loaded from the environment, swappable during tests)."""
import logging
import os
import sys
from typing import NamedTuple, Tuple


class Settings(NamedTuple):
    database_url: str
    jwt_secret: str
    refresh_token_secret: str
    access_token_ttl: int
    refresh_token_ttl: int
    app_env: str
    upload_dir: str
    cors_origins: Tuple[str, ...]
    api_prefix: str
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
)


def _split_origins(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./restaurant.db"),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret"),
        refresh_token_secret=os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret"),
        access_token_ttl=int(os.getenv("ACCESS_TOKEN_TTL", 15 * 60)),
        refresh_token_ttl=int(os.getenv("REFRESH_TOKEN_TTL", 7 * 24 * 60 * 60)),
        app_env=os.getenv("APP_ENV", "development").lower(),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
        api_prefix=os.getenv("API_PREFIX", "/api/v1"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


state = load_settings()


def get_settings() -> Settings:
    return state


def configure(**changes) -> Settings:
    """Replace individual settings at runtime and return the new state."""
    global state
    state = state._replace(**changes)
    return state


def reset_settings() -> Settings:
    global state
    state = load_settings()
    return state


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure application-wide logging on stdout."""
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # SQL echo is noise outside debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return logging.getLogger("restaurant_api")
