"""VulnGate REST API: FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from vulngate.api.deps import (
    close_snyk_client,
    dispose_engine,
    ensure_schema,
    get_settings,
    init_orchestrator,
    init_session_factory,
    init_settings,
)
from vulngate.api.errors import register_error_handlers
from vulngate.api.middleware.request_id import RequestIDMiddleware
from vulngate.api.routers import artifacts, gate
from vulngate.core.config import GateSettings
from vulngate.core.logging import setup_logging
from vulngate.engines.snyk.client import SnykClient, SnykError

log = structlog.get_logger("vulngate.api")


async def check_credentials(client: SnykClient, settings: GateSettings) -> bool:
    """Probe the Snyk API with the configured token; only logs on failure."""
    if not settings.api_organization:
        log.warning("snyk.organization_not_configured", setting="snyk.api.organization")
        return False
    try:
        await client.get_notification_settings(settings.api_organization)
    except SnykError as exc:
        log.warning("snyk.credentials_check_failed", status=exc.status_code, error=str(exc))
        return False
    log.info("snyk.credentials_ok", organization=settings.api_organization)
    return True


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: init DB + Snyk client. Shutdown: close both."""
    settings = get_settings()
    init_session_factory()
    await ensure_schema()
    client = init_orchestrator(settings)
    await check_credentials(client, settings)
    yield
    await close_snyk_client()
    await dispose_engine()


def create_app(config_path: str | Path | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Settings are loaded here rather than in the lifespan so that a bad
    configuration fails before the server starts listening.
    """
    setup_logging()
    settings = init_settings(config_path)
    log.info(
        "gate.configured",
        vulnerability_threshold=settings.vulnerability_threshold.label,
        license_threshold=settings.license_threshold.label,
        block_on_api_failure=settings.block_on_api_failure,
    )

    app = FastAPI(
        title="VulnGate",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(gate.router, prefix="/api/v1/gate", tags=["gate"])
    app.include_router(artifacts.router, prefix="/api/v1/artifacts", tags=["artifacts"])

    return app
