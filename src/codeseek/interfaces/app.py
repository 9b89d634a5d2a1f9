"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from codeseek.infrastructure.config import AppConfig
from codeseek.interfaces.app_state import AppState
from codeseek.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create the FastAPI app. Configuration only; resources come from lifespan()."""
    app = FastAPI(
        title="codeseek",
        description="Detail record extraction for catalog search results",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from codeseek.interfaces.api.detail.router import router as detail_router

    app.include_router(detail_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe; 200 as long as the process is running."""
        registry = getattr(app.state, "rule_registry", None)
        detail_cache = getattr(app.state, "detail_cache", None)
        return {
            "status": "ok",
            "sources": len(registry.supported_site_ids()) if registry else 0,
            "cache_backend": detail_cache.backend if detail_cache else "none",
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=response.status_code if response is not None else 500,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
