"""Tests for ArtifactService."""

from unittest.mock import AsyncMock

import pytest

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
from vulngate.services.artifact_service import ArtifactService

KEY = ArtifactKey(repo_key="libs-release", path="org/acme/lib/1.0/lib-1.0.jar")


def _make_service() -> tuple[ArtifactService, AsyncMock, AsyncMock]:
    dao = AsyncMock(spec=ArtifactPropertyDAO)
    cache = AsyncMock(spec=DecisionCache)
    return ArtifactService(dao, cache), dao, cache


class TestGetStatus:
    async def test_found(self):
        svc, _, cache = _make_service()
        cached = CachedDecision(vulnerability_summary="0 critical, 0 high, 0 medium, 0 low")
        cache.read.return_value = cached
        session = AsyncMock()
        assert await svc.get_status(session, KEY) is cached
        cache.read.assert_awaited_once_with(session, KEY)

    async def test_not_found(self):
        svc, _, cache = _make_service()
        cache.read.return_value = None
        with pytest.raises(NotFoundError):
            await svc.get_status(AsyncMock(), KEY)


class TestSetForceDownload:
    async def test_enable_vulnerabilities(self):
        svc, dao, _ = _make_service()
        session = AsyncMock()
        await svc.set_force_download(
            session, KEY, IssueKind.VULNERABILITY, enabled=True, info="  approved in SEC-12 "
        )
        calls = [c.args for c in dao.set_property.await_args_list]
        assert calls == [
            (session, KEY, ISSUE_VULNERABILITIES_FORCE_DOWNLOAD, "true"),
            (session, KEY, ISSUE_VULNERABILITIES_FORCE_DOWNLOAD_INFO, "approved in SEC-12"),
        ]

    async def test_disable_licenses_clears_info(self):
        svc, dao, _ = _make_service()
        session = AsyncMock()
        await svc.set_force_download(session, KEY, IssueKind.LICENSE, enabled=False)
        calls = [c.args for c in dao.set_property.await_args_list]
        assert calls == [
            (session, KEY, ISSUE_LICENSES_FORCE_DOWNLOAD, "false"),
            (session, KEY, ISSUE_LICENSES_FORCE_DOWNLOAD_INFO, ""),
        ]

    @pytest.mark.parametrize("info", [None, "", "   "])
    async def test_enable_requires_justification(self, info):
        svc, dao, _ = _make_service()
        with pytest.raises(ValidationError, match="justification"):
            await svc.set_force_download(
                AsyncMock(), KEY, IssueKind.VULNERABILITY, enabled=True, info=info
            )
        dao.set_property.assert_not_awaited()


class TestClearScan:
    async def test_cleared(self):
        svc, _, cache = _make_service()
        cache.clear.return_value = True
        await svc.clear_scan(AsyncMock(), KEY)
        cache.clear.assert_awaited_once()

    async def test_nothing_to_clear(self):
        svc, _, cache = _make_service()
        cache.clear.return_value = False
        with pytest.raises(NotFoundError):
            await svc.clear_scan(AsyncMock(), KEY)
