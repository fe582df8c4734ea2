"""FastAPI application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from everdice import __version__
from everdice.api.routers import campaigns, characters, dice, dm, progress, toolkit, trace
from everdice.core.config import get_settings
from everdice.core.exceptions import EverdiceError, RecordNotFoundError
from everdice.core.logging import bind_context, clear_context, configure_logging, get_logger


logger = get_logger(__name__)


def _operation_name(request: Request) -> str:
    """Readable name of the endpoint that handled a request ('Create character')."""
    route = request.scope.get("route")
    endpoint = request.scope.get("endpoint")
    name = getattr(route, "name", None) or getattr(endpoint, "__name__", None) or "Request"
    return name.replace("_", " ").capitalize()


async def handle_not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": exc.message})


async def handle_everdice_error(request: Request, exc: EverdiceError) -> JSONResponse:
    operation = _operation_name(request)
    logger.error(
        "Request failed",
        operation=operation,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={"message": f"{operation} failed", "error": str(exc)},
    )


def create_app() -> FastAPI:
    """Build the Everdice API application."""
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        log_file=settings.log_file,
    )

    app = FastAPI(title=settings.api.title, version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RecordNotFoundError, handle_not_found)
    app.add_exception_handler(EverdiceError, handle_everdice_error)

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Any) -> Any:
        clear_context()
        bind_context(method=request.method, path=request.url.path)
        return await call_next(request)

    for module in (characters, campaigns, progress, trace, dice, toolkit, dm):
        app.include_router(module.router, prefix="/api")

    @app.get("/")
    def health_check() -> dict[str, str]:
        return {"status": "active", "service": settings.api.title, "version": __version__}

    logger.info("API application created", title=settings.api.title)
    return app


__all__ = ["create_app"]
