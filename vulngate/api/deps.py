"""Dependency injection: settings, session, Snyk client and service singletons."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from vulngate.core.config import GateSettings, load_settings
from vulngate.core.database import create_engine, create_schema, create_session_factory
from vulngate.core.exceptions import ConfigurationError
from vulngate.dao.artifact_property_dao import ArtifactPropertyDAO
from vulngate.engines.gate.cache import DecisionCache
from vulngate.engines.gate.orchestrator import ScanOrchestrator
from vulngate.engines.gate.scanners import build_scanners
from vulngate.engines.snyk.client import SnykClient
from vulngate.services.artifact_service import ArtifactService

# ---------------------------------------------------------------------------
# DAO / service singletons
# ---------------------------------------------------------------------------
_property_dao = ArtifactPropertyDAO()
_decision_cache = DecisionCache(_property_dao)
_artifact_service = ArtifactService(_property_dao, _decision_cache)

# ---------------------------------------------------------------------------
# Initialised by app lifespan / factory
# ---------------------------------------------------------------------------
_settings: GateSettings | None = None
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_snyk_client: SnykClient | None = None
_orchestrator: ScanOrchestrator | None = None


def init_settings(path: str | Path | None = None) -> GateSettings:
    """Load and validate settings. Raises :class:`ConfigurationError`."""
    global _settings  # noqa: PLW0603
    _settings = load_settings(path)
    return _settings


def get_settings() -> GateSettings:
    if _settings is None:
        raise ConfigurationError("settings have not been loaded")
    return _settings


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_engine(database_url)
    _session_factory = create_session_factory(_engine)
    return _session_factory


async def ensure_schema() -> None:
    if _engine is None:
        raise RuntimeError("call init_session_factory() first")
    await create_schema(_engine)


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Snyk client + orchestrator
# ---------------------------------------------------------------------------


def init_orchestrator(
    settings: GateSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SnykClient:
    """Create the shared Snyk client and the orchestrator that uses it."""
    global _snyk_client, _orchestrator  # noqa: PLW0603
    _snyk_client = SnykClient.from_settings(settings, transport=transport)
    _orchestrator = ScanOrchestrator(
        _decision_cache,
        build_scanners(_snyk_client, settings),
        get_settings,
    )
    return _snyk_client


async def close_snyk_client() -> None:
    global _snyk_client, _orchestrator  # noqa: PLW0603
    if _snyk_client is not None:
        await _snyk_client.close()
        _snyk_client = None
    _orchestrator = None


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def get_orchestrator() -> ScanOrchestrator:
    if _orchestrator is None:
        raise RuntimeError("call init_orchestrator() before handling requests")
    return _orchestrator


def get_artifact_service() -> ArtifactService:
    return _artifact_service
