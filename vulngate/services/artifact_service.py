"""ArtifactService: operator view of cached decisions and overrides."""

from sqlalchemy.ext.asyncio import AsyncSession

from vulngate.dao.artifact_property_dao import ArtifactPropertyDAO
from vulngate.engines.gate.cache import (
    ISSUE_LICENSES_FORCE_DOWNLOAD,
    ISSUE_LICENSES_FORCE_DOWNLOAD_INFO,
    ISSUE_VULNERABILITIES_FORCE_DOWNLOAD,
    ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO,
    DecisionCache,
)
from vulngate.engines.gate.models import ArtifactKey, CachedDecision, IssueKind
from vulngate.services import NotFoundError, ValidationError

_OVERRIDE_PROPERTIES: dict[IssueKind, tuple[str, str]] = {
    IssueKind.VULNERABILITY: (
        ISSUE_VULNERABILITIES_FORCE_DOWNLOAD,
        ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO,
    ),
    IssueKind.LICENSE: (ISSUE_LICENSES_FORCE_DOWNLOAD, ISSUE_LICENSES_FORCE_DOWNLOAD_INFO),
}


class ArtifactService:
    """Stateless service over the artifact property store."""

    def __init__(self, property_dao: ArtifactPropertyDAO, cache: DecisionCache) -> None:
        self._property_dao = property_dao
        self._cache = cache

    async def get_status(self, session: AsyncSession, key: ArtifactKey) -> CachedDecision:
        """Return the cached decision for *key*.

        Raises :class:`NotFoundError` if the artifact carries no gate properties.
        """
        cached = await self._cache.read(session, key)
        if cached is None:
            raise NotFoundError(f"artifact '{key}' has no scan properties")
        return cached

    async def set_force_download(
        self,
        session: AsyncSession,
        key: ArtifactKey,
        kind: IssueKind,
        *,
        enabled: bool,
        info: str | None = None,
    ) -> None:
        """Set or clear the force-download override for one issue kind.

        Enabling requires a justification, which is stored next to the flag.
        """
        info = (info or "").strip()
        if enabled and not info:
            raise ValidationError("a justification is required to force download")
        flag_name, info_name = _OVERRIDE_PROPERTIES[kind]
        await self._property_dao.set_property(
            session, key, flag_name, "true" if enabled else "false"
        )
        await self._property_dao.set_property(session, key, info_name, info)

    async def clear_scan(self, session: AsyncSession, key: ArtifactKey) -> None:
        """Forget the cached scan so the next download request rescans.

        Raises :class:`NotFoundError` if nothing was cached.
        """
        if not await self._cache.clear(session, key):
            raise NotFoundError(f"artifact '{key}' has no cached scan")
