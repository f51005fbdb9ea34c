# src/menu_lens/main.py
"""Main entry point for the Menu Lens application."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_lens.api.v1 import analyses_router, history_router, sessions_router
from menu_lens.core.errors import INTERNAL_ERROR_MESSAGE
from menu_lens.core.logger import setup_logging
from menu_lens.core.origins import OriginPolicy
from menu_lens.core.settings import settings
from menu_lens.db.session import create_tables

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Session-scoped menu and product translation API",
    version=settings.app_version,
)

origin_policy = OriginPolicy.from_lists(
    settings.allowed_origins,
    settings.allowed_origin_patterns,
    settings.default_origin,
)


@app.middleware("http")
async def cors_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Answer preflight requests and attach CORS headers to every response."""
    headers = origin_policy.cors_headers(request.headers.get("origin"))
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=headers)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )
    response.headers.update(headers)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render errors as ``{"error": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    logger.info("Rejected invalid request to %s: %s", request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


# Include API routers
app.include_router(sessions_router, prefix="/api/v1")
app.include_router(history_router, prefix="/api/v1")
app.include_router(analyses_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging(settings.log_level)
    create_tables()
    if not settings.session_signing_secret:
        logger.error("SESSION_SIGNING_SECRET is not set; session endpoints will fail")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Session-scoped menu and product translation API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("menu_lens.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
