# backend/residenthub/main.py
import logging
import os
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import Base, engine
from .errors import ServiceError
from .logging_config import setup_logger

from .apps.accounts.router import router as accounts_router
from .apps.societies.router import router as societies_router
from .apps.units.router import router as units_router
from .apps.residents.router import router as residents_router
from .apps.maintenance.router import router as maintenance_router
from .apps.issues.router import router as issues_router
from .apps.announcements.router import router as announcements_router
from .apps.dashboard.router import router as dashboard_router

setup_logger()
logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in {"1", "true", "yes", "on"}


app = FastAPI(title="ResidentHub API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code in (401, 403):
        logger.warning(
            "%s %s refused: %s",
            request.method,
            request.url.path,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "kind": "internal_error"},
    )


@app.on_event("startup")
def _create_tables() -> None:
    # Local demos only; deployed databases are provisioned separately.
    if _env_flag("RESIDENTHUB_CREATE_TABLES"):
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "ResidentHub backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(accounts_router)
app.include_router(societies_router)
app.include_router(units_router)
app.include_router(residents_router)
app.include_router(maintenance_router)
app.include_router(issues_router)
app.include_router(announcements_router)
app.include_router(dashboard_router)
