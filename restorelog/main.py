from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .application.executor import MutationExecutor
from .application.log_view import LogViewController
from .application.resolver import IdentifierResolver
from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine, init_db
from .infrastructure.shopify.client import AdminApiClient
from .logging_config import get_logger, setup_logging
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router, history_router
from .presentation.error_handlers import handle_domain_error, problem_response
from .presentation.problem_details import ProblemDetailFactory
from .telemetry import setup_telemetry


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)

    init_db(get_main_engine())
    logger.info("Database initialized successfully")

    admin_client = AdminApiClient.from_settings()
    log_view = LogViewController(
        IdentifierResolver.for_client(admin_client),
        MutationExecutor.for_client(admin_client),
        session_factory=lambda: Session(get_main_engine()),
    )
    log_view.load_logs()

    app.state.admin_client = admin_client
    app.state.log_view = log_view
    logger.info(
        "Application startup",
        shop=settings.shop_domain,
        api_version=settings.admin_api_version,
        debug=settings.debug,
    )

    yield

    await admin_client.aclose()
    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
    description="""
**Restore Log** - audit history and one-click restore for destructive store
admin operations.

## Core Features

- **Operation history** of tag removals and metafield clears
- **Restore** of a whole log entry: removed tags are added back and cleared
  metafields are set again, one item after another
- **Progress tracking** of the running restore, including the items that failed
- **Tag counts** per resource for previewing bulk tag operations

A log entry is consumed once every one of its items has been attempted.
    """.strip(),
    openapi_tags=[
        {
            "name": "logs",
            "description": "Log listing, deletion, single-item restore and tag counts",
        },
        {
            "name": "history",
            "description": "State of the history page and its restore workflow",
        },
    ],
)

setup_telemetry(app)

app.middleware("http")(log_requests_middleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Global handler for domain-specific errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return handle_domain_error(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Global handler for Pydantic validation errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Request validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
    )

    field_errors = []
    for error in exc.errors():
        field_name = ".".join(
            str(loc) for loc in error["loc"] if loc not in ("body", "path", "query")
        )
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": error["type"],
                "message": error["msg"],
            }
        )

    problem = ProblemDetailFactory.validation_failed(
        detail="Request validation failed",
        instance=str(request.url.path),
        field_errors=field_errors,
    )
    return problem_response(problem)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Global handler for database errors."""
    logger = get_logger(__name__)
    logger.error(
        "Database error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    problem = ProblemDetailFactory.internal_server_error(
        detail="A database error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return problem_response(problem)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global handler for unexpected errors."""
    logger = get_logger(__name__)
    logger.error(
        "Unexpected error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    problem = ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
    )


app.include_router(api_router)
app.include_router(history_router)
