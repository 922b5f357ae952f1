import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from persister.config import settings
from persister.database import init_db
from persister.routers import sessions
from persister.schemas.errors import (
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
LOGGER = logging.getLogger(__name__)

app = FastAPI(title="User Session Persister")

app.include_router(sessions.router, prefix="/api")


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(BackendUnavailableError)
def backend_unavailable_handler(request: Request, exc: BackendUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


@app.on_event("startup")
def startup() -> None:
    if settings.create_tables_on_startup:
        init_db()
    LOGGER.info("Session persister started")


@app.get("/health")
def health():
    return {"status": "ok"}
