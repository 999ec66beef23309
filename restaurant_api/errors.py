"""Application error hierarchy.

Services raise these; the HTTP layer maps each one to its ``status_code`` and
an ``{"error": message}`` body. Anything not derived from ``AppError`` is
treated as an internal error and never shown to the caller.
"""
from typing import Iterable


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class InvalidTokenError(AppError):
    status_code = 403


class RevokedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class StorageError(AppError):
    """File system failure whose message is safe to return."""
    status_code = 500


class DishesNotFoundError(NotFoundError):
    def __init__(self, missing_ids: Iterable[int]):
        self.missing_ids = sorted(missing_ids)
        super().__init__("Dishes not found: " + ", ".join(str(i) for i in self.missing_ids))
