"""Decision cache: scan outcomes persisted as artifact properties."""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from vulngate.engines.gate.models import ArtifactKey, CachedDecision

log = structlog.get_logger("vulngate.engine")

ISSUE_VULNERABILITIES = "snyk.issue.vulnerabilities"
ISSUE_VULNERABILITIES_FORCE_DOWNLOAD = "snyk.issue.vulnerabilities.forceDownload"
ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO = "snyk.issue.vulnerabilities.forceDownload.info"
ISSUE_LICENSES = "snyk.issue.licenses"
ISSUE_LICENSES_FORCE_DOWNLOAD = "snyk.issue.licenses.forceDownload"
ISSUE_LICENSES_FORCE_DOWNLOAD_INFO = "snyk.issue.licenses.forceDownload.info"
ISSUE_URL = "snyk.issue.url"

PROPERTY_NAMES = (
    ISSUE_VULNERABILITIES,
    ISSUE_VULNERABILITIES_FORCE_DOWNLOAD,
    ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO,
    ISSUE_LICENSES,
    ISSUE_LICENSES_FORCE_DOWNLOAD,
    ISSUE_LICENSES_FORCE_DOWNLOAD_INFO,
    ISSUE_URL,
)


class PropertyStoreError(Exception):
    """The property store could not be read or written."""


class PropertyStore(Protocol):
    """Per-artifact string properties, owned by the repository manager."""

    async def get_property(self, session: Any, key: ArtifactKey, name: str) -> str | None: ...

    async def set_property(self, session: Any, key: ArtifactKey, name: str, value: str) -> None: ...

    async def delete_property(self, session: Any, key: ArtifactKey, name: str) -> bool: ...


class MemoryPropertyStore:
    """Dict-backed property store for standalone runs; ``session`` is ignored."""

    def __init__(self) -> None:
        self._values: dict[tuple[str, str, str], str] = {}

    async def get_property(self, session: Any, key: ArtifactKey, name: str) -> str | None:
        return self._values.get((key.repo_key, key.path, name))

    async def set_property(self, session: Any, key: ArtifactKey, name: str, value: str) -> None:
        self._values[(key.repo_key, key.path, name)] = value

    async def delete_property(self, session: Any, key: ArtifactKey, name: str) -> bool:
        return self._values.pop((key.repo_key, key.path, name), None) is not None


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


class DecisionCache:
    """Read/write the cached decision for an artifact.

    The write guard is a plain read-then-write, not a compare-and-set: two
    concurrent first scans of one artifact may both write, and the store
    keeps whichever lands last.
    """

    def __init__(self, store: PropertyStore) -> None:
        self._store = store

    async def has_cached_decision(self, session: Any, key: ArtifactKey) -> bool:
        summary = await self._store.get_property(session, key, ISSUE_VULNERABILITIES)
        return bool(summary)

    async def read(self, session: Any, key: ArtifactKey) -> CachedDecision | None:
        """Return the stored decision, or None if the artifact carries no properties."""
        values = {
            name: await self._store.get_property(session, key, name) for name in PROPERTY_NAMES
        }
        if all(value is None for value in values.values()):
            return None
        return CachedDecision(
            vulnerability_summary=values[ISSUE_VULNERABILITIES] or None,
            license_summary=values[ISSUE_LICENSES] or None,
            issue_url=values[ISSUE_URL] or None,
            vulnerabilities_force_download=_flag(values[ISSUE_VULNERABILITIES_FORCE_DOWNLOAD]),
            vulnerabilities_force_download_info=values[ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO]
            or None,
            licenses_force_download=_flag(values[ISSUE_LICENSES_FORCE_DOWNLOAD]),
            licenses_force_download_info=values[ISSUE_LICENSES_FORCE_DOWNLOAD_INFO] or None,
        )

    async def write(self, session: Any, key: ArtifactKey, decision: CachedDecision) -> bool:
        """Persist *decision* unless the artifact was already scanned.

        Force-download flags are only initialised when absent, so an
        operator override set ahead of the first scan is kept. Returns
        whether anything was written.
        """
        if await self.has_cached_decision(session, key):
            log.debug("cache.skip_already_scanned", artifact=str(key))
            return False

        await self._store.set_property(
            session, key, ISSUE_VULNERABILITIES, decision.vulnerability_summary or ""
        )
        await self._store.set_property(session, key, ISSUE_LICENSES, decision.license_summary or "")
        await self._store.set_property(session, key, ISSUE_URL, decision.issue_url or "")

        defaults = {
            ISSUE_VULNERABILITIES_FORCE_DOWNLOAD: "false",
            ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO: "",
            ISSUE_LICENSES_FORCE_DOWNLOAD: "false",
            ISSUE_LICENSES_FORCE_DOWNLOAD_INFO: "",
        }
        for name, value in defaults.items():
            if await self._store.get_property(session, key, name) is None:
                await self._store.set_property(session, key, name, value)

        log.debug("cache.written", artifact=str(key))
        return True

    async def clear(self, session: Any, key: ArtifactKey) -> bool:
        """Drop the cached scan so the next request rescans. Overrides are kept."""
        removed = False
        for name in (ISSUE_VULNERABILITIES, ISSUE_LICENSES, ISSUE_URL):
            removed = await self._store.delete_property(session, key, name) or removed
        return removed
