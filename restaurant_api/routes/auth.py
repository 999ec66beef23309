from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import ACCESS_COOKIE, REFRESH_COOKIE
from ..config import get_settings
from ..deps import get_db
from ..services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=get_settings().is_production,
        path="/",
    )


@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
    settings = get_settings()
    result = auth_service.login(db, payload.email, payload.password)
    _set_cookie(response, ACCESS_COOKIE, result.access_token, settings.access_token_ttl)
    _set_cookie(response, REFRESH_COOKIE, result.refresh_token, settings.refresh_token_ttl)
    return schemas.LoginResponse(user_id=result.user_id, role=result.role)


@router.post("/refresh", response_model=schemas.MessageResponse)
def refresh(response: Response, refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE), db: Session = Depends(get_db)):
    access = auth_service.refresh_access_token(db, refresh_token)
    _set_cookie(response, ACCESS_COOKIE, access, get_settings().access_token_ttl)
    return {"message": "Access token refreshed"}


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(response: Response, refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE), db: Session = Depends(get_db)):
    auth_service.logout(db, refresh_token)
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")
    return {"message": "Logged out successfully"}
