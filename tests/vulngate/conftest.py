"""Shared fixtures for vulngate tests.

Everything here runs without a database or network; the Snyk API is
replaced by fake scanners or ``httpx.MockTransport``.
"""

from __future__ import annotations

import pytest

from vulngate.core.config import GateSettings
from vulngate.engines.gate.cache import DecisionCache, MemoryPropertyStore


@pytest.fixture
def settings() -> GateSettings:
    return GateSettings(api_token="test-token", api_organization="acme-org")


@pytest.fixture
def store() -> MemoryPropertyStore:
    return MemoryPropertyStore()


@pytest.fixture
def cache(store) -> DecisionCache:
    return DecisionCache(store)
