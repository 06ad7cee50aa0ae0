"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from intake.api.meals import router as meals_router
from intake.app_logging import configure_logging
from intake.containers import AppContainer
from intake.services.estimation import (
    EstimationUnavailableError,
    MissingCredentialError,
    UnparseableResponseError,
)
from intake.services.images import ImageProcessingError
from intake.services.tracker import EntryNotFoundError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.tracker.check_for_new_day()
        except Exception:
            logger.exception("Startup rollover check failed")
        app.state.container.scheduler.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="Intake", lifespan=lifespan)
    app.state.container = container

    app.include_router(meals_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(MissingCredentialError)
    async def missing_credential(
        request: Request, exc: MissingCredentialError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(EstimationUnavailableError)
    async def estimation_unavailable(
        request: Request, exc: EstimationUnavailableError
    ) -> JSONResponse:
        logger.warning("Calorie estimation unavailable: %s", exc)
        return _error(
            status.HTTP_502_BAD_GATEWAY,
            _format_upstream_error(
                request.app.state.container,
                exc,
                "Failed to fetch calorie estimate.",
            ),
        )

    @app.exception_handler(UnparseableResponseError)
    async def unparseable_response(
        request: Request, exc: UnparseableResponseError
    ) -> JSONResponse:
        return _error(422, str(exc))

    @app.exception_handler(ImageProcessingError)
    async def image_failure(request: Request, exc: ImageProcessingError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "Failed to process image.")

    @app.exception_handler(EntryNotFoundError)
    async def entry_not_found(request: Request, exc: EntryNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ValueError)
    async def invalid_value(request: Request, exc: ValueError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    return app


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _format_upstream_error(
    container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a user-facing upstream error message with local debug info."""
    if container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
