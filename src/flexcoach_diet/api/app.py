"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flexcoach_diet.api.admin import router as admin_router
from flexcoach_diet.api.diet_plans import router as diet_plans_router
from flexcoach_diet.api.foods import router as foods_router
from flexcoach_diet.api.history import router as history_router
from flexcoach_diet.api.serializers import error_body
from flexcoach_diet.app_logging import configure_logging
from flexcoach_diet.containers import AppContainer
from flexcoach_diet.domain.errors import (
    DietPlanError,
    FieldError,
    InternalError,
    ValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(diet_plans_router)
    app.include_router(history_router)
    app.include_router(foods_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(DietPlanError)
    async def handle_diet_plan_error(
        request: Request, exc: DietPlanError
    ) -> JSONResponse:
        if exc.status_code >= 500:  # noqa: PLR2004
            logger.error(
                "Request failed",
                exc_info=exc,
                extra={"path": request.url.path, "code": exc.code},
            )
        else:
            logger.warning(
                "Request rejected: %s",
                exc.message,
                extra={"path": request.url.path, "code": exc.code},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.code, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            FieldError(
                ".".join(str(part) for part in error["loc"] if part != "body")
                or "body",
                error["msg"],
            )
            for error in exc.errors()
        ]
        logger.warning(
            "Request validation failed", extra={"path": request.url.path}
        )
        error = ValidationError.from_fields(details)
        return JSONResponse(
            status_code=error.status_code,
            content=error_body(error.message, error.code, error.details),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error", exc_info=exc, extra={"path": request.url.path}
        )
        error = InternalError("Internal server error")
        return JSONResponse(
            status_code=error.status_code,
            content=error_body(error.message, error.code),
        )

    return app
