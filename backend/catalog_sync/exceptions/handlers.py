from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from catalog_sync.ingestion.logger import logger

from .base import AppError


def error_body(exc: AppError) -> dict[str, str]:
    return {"detail": exc.detail, "error": type(exc).__name__}


def register_exception_handlers(app: FastAPI) -> None:
    """Surface the catalog error taxonomy from whatever app embeds this package."""

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{exc.status_code} {type(exc).__name__}: {exc.detail}")
        else:
            logger.warning(f"{exc.status_code} {type(exc).__name__}: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(Exception)
    async def generic_exception_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled {type(exc).__name__} during catalog request: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An unexpected error occurred."},
        )
