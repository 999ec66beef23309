import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .. import schemas

router = APIRouter(tags=["health"])


@router.get("/health", response_model=schemas.HealthResponse)
def health(request: Request):
    db_ok = request.app.state.database.ping()
    body = schemas.HealthResponse(
        status="ok" if db_ok else "error",
        uptime=int(time.monotonic() - request.app.state.started_at),
        db=schemas.DbHealth(status="connected" if db_ok else "disconnected"),
        timestamp=datetime.now(timezone.utc),
    )
    if not db_ok:
        return JSONResponse(status_code=503, content=body.model_dump(mode="json", by_alias=True))
    return body
