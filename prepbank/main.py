"""Application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from prepbank.api.v1.router import api_router
from prepbank.common.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from prepbank.core.config import settings
from prepbank.core.errors import (
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from prepbank.core.logging import get_logger, setup_logging
from prepbank.db.base import Base
from prepbank.db.engine import engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.ENV == "dev":
        # Outside dev the schema is owned by Alembic
        import prepbank.models  # noqa: F401

        Base.metadata.create_all(bind=engine)
    logger.info(
        "app_started",
        extra={"event": "app_started", "env": settings.ENV, "api_prefix": settings.API_PREFIX},
    )
    yield


def create_app() -> FastAPI:
    docs = settings.docs_enabled
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Question bank admin API: CSV import, import reports and syllabus",
        openapi_url="/openapi.json" if docs else None,
        docs_url="/docs" if docs else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # CORS is added last so it wraps the request-id middleware
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str | None]:
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "api": settings.API_PREFIX,
            "docs": "/docs" if docs else None,
        }

    return app


app = create_app()
