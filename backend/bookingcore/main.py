import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import SessionLocal
from .exceptions import (
    BookingEngineError,
    CommitTimeout,
    ConfigMissing,
    NotFound,
    SlotConflict,
    ValidationError,
)
from .redis_client import redis_client
from .routers import audit_log, blocked_ranges, bookings, slots

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Booking Availability API")

app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(blocked_ranges.router)
app.include_router(audit_log.router)


# ===== Engine errors → HTTP =====
_ERROR_STATUS = {
    ValidationError: 400,
    NotFound: 404,
    SlotConflict: 409,
    ConfigMissing: 409,
    CommitTimeout: 503,
}


@app.exception_handler(BookingEngineError)
async def engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    content = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, SlotConflict):
        content["requery"] = True
        content["conflicting_time"] = exc.conflicting_time
    if isinstance(exc, CommitTimeout):
        content["retry"] = True
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} → {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content=content)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        redis_ok = False

    db = SessionLocal()
    try:
        db_ok = db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError:
        db_ok = False
    finally:
        db.close()

    return {"db": db_ok, "redis": redis_ok}
