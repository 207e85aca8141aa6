import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import database
from .api import auth as auth_api
from .api import category as category_api
from .api import company as company_api
from .api import home as home_api
from .api import job as job_api
from .api import job_application as job_application_api
from .api import user as user_api
from .config import configure_logging
from .utils.error_handlers import AppError, create_error_response, get_error_message

logger = logging.getLogger(__name__)

ROUTERS = (
    auth_api.router,
    user_api.router,
    company_api.router,
    category_api.router,
    job_api.router,
    job_application_api.router,
    home_api.router,
)


def include_routers(target: FastAPI) -> None:
    for router in ROUTERS:
        target.include_router(router)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return get_error_message("validation_error")
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg") or get_error_message("validation_error")
    return f"{loc}: {msg}" if loc else msg


def register_exception_handlers(target: FastAPI) -> None:
    @target.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTPException in the standard error envelope."""
        return create_error_response(exc.status_code, str(exc.detail))

    @target.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return create_error_response(exc.status_code, exc.message, exc.details)

    @target.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
        return create_error_response(400, _validation_message(exc))

    @target.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Domain-model validation failures."""
        logger.warning("ValueError: %s", exc)
        return create_error_response(400, str(exc) or get_error_message("validation_error"))

    @target.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @target.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors globally."""
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))


app = FastAPI(title="HireSphere API")
include_routers(app)
register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "HireSphere API",
    }


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
_extra_origins = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *_extra_origins],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    try:
        database.init_db()
        app.state.db_init_error = None
    except SQLAlchemyError as e:
        logger.exception("Database initialisation failed")
        app.state.db_init_error = str(e)


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=500,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=500,
            detail=f"DB connection failed: {e}",
        ) from e

    return {"status": "ok"}
