"""ArtifactPropertyDAO failure paths, against a mocked session."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from vulngate.dao.artifact_property_dao import ArtifactPropertyDAO
from vulngate.engines.gate.cache import ISSUE_URL, ISSUE_VULNERABILITIES, PropertyStoreError
from vulngate.engines.gate.models import ArtifactKey

KEY = ArtifactKey(repo_key="libs-release", path="org/acme/lib/1.0/lib-1.0.jar")

dao = ArtifactPropertyDAO()


@pytest.fixture
def session():
    mock = AsyncMock(spec=AsyncSession)
    mock.execute.side_effect = OperationalError("SELECT 1", {}, ConnectionResetError("reset"))
    return mock


class TestDatabaseFailures:
    async def test_get_property(self, session):
        with pytest.raises(PropertyStoreError, match="cannot read snyk.issue.vulnerabilities") as info:
            await dao.get_property(session, KEY, ISSUE_VULNERABILITIES)
        assert isinstance(info.value.__cause__, OperationalError)

    async def test_set_property(self, session):
        with pytest.raises(PropertyStoreError, match="cannot write snyk.issue.url"):
            await dao.set_property(session, KEY, ISSUE_URL, "https://snyk.io/vuln/x")

    async def test_delete_property(self, session):
        with pytest.raises(PropertyStoreError, match="cannot delete snyk.issue.url"):
            await dao.delete_property(session, KEY, ISSUE_URL)
