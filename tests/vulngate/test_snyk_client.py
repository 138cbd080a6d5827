"""Tests for the Snyk API client (httpx.MockTransport, no network)."""

from __future__ import annotations

import json

import httpx
import pytest

from vulngate.core.config import GateSettings
from vulngate.engines.snyk.client import SnykClient, SnykError
from vulngate.engines.snyk.models import SnykTestResult

BASE_URL = "https://snyk.io/api/v1/"

TEST_RESULT = {
    "ok": False,
    "issues": {
        "vulnerabilities": [
            {
                "id": "SNYK-JAVA-ORGACME-1",
                "severity": "high",
                "title": "Remote Code Execution",
                "url": "https://snyk.io/vuln/SNYK-JAVA-ORGACME-1",
                "package": "org.acme:lib",
                "version": "1.0",
            }
        ],
        "licenses": [],
    },
    "dependencyCount": 3,
    "org": {"id": "org-id", "name": "acme"},
    "packageManager": "maven",
}


def _client(handler, **kwargs) -> SnykClient:
    return SnykClient(BASE_URL, "secret", transport=httpx.MockTransport(handler), **kwargs)


class TestTestEndpoints:
    async def test_maven(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=TEST_RESULT)

        async with _client(handler, user_agent="vulngate/test") as client:
            result = await client.test_maven("org.acme", "lib", "1.0", organization="acme-org")

        request = seen[0]
        assert request.url.path == "/api/v1/test/maven/org.acme/lib/1.0"
        assert request.url.params["org"] == "acme-org"
        assert request.headers["Authorization"] == "token secret"
        assert request.headers["User-Agent"] == "vulngate/test"
        assert result.dependency_count == 3
        assert result.issues.vulnerabilities[0].id == "SNYK-JAVA-ORGACME-1"

    async def test_npm_scoped_name_is_one_segment(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with _client(handler) as client:
            await client.test_npm("@types/node", "20.1.0")

        assert b"%2Fnode" in seen[0].url.raw_path
        assert "org" not in seen[0].url.params

    async def test_pip(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True, "issues": {}})

        async with _client(handler) as client:
            result = await client.test_pip("requests", "2.31.0")

        assert seen[0].url.path == "/api/v1/test/pip/requests/2.31.0"
        assert result.issues.vulnerabilities == []
        assert result.issues.licenses == []

    async def test_no_token_no_auth_header(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = SnykClient(BASE_URL, "", transport=httpx.MockTransport(handler))
        async with client:
            await client.test_pip("requests", "2.31.0")
        assert "Authorization" not in seen[0].headers


class TestPayload:
    def test_only_read_fields_are_kept(self):
        result = SnykTestResult.model_validate(TEST_RESULT)
        assert set(result.model_dump()) == {"ok", "issues", "dependency_count"}
        issue = result.issues.vulnerabilities[0]
        assert set(issue.model_dump()) == {"id", "severity", "title", "url"}
        assert result.ok is False


class TestFailures:
    async def test_error_status(self):
        async with _client(lambda request: httpx.Response(401, json={})) as client:
            with pytest.raises(SnykError) as exc_info:
                await client.test_maven("org.acme", "lib", "1.0")
        assert exc_info.value.status_code == 401

    async def test_server_error(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            with pytest.raises(SnykError, match="HTTP 503"):
                await client.test_npm("lodash", "4.17.21")

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(SnykError, match="failed") as exc_info:
                await client.test_pip("requests", "2.31.0")
        assert exc_info.value.status_code is None

    async def test_non_json_body(self):
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(SnykError, match="non-JSON"):
                await client.test_pip("requests", "2.31.0")

    async def test_invalid_payload(self):
        payload = {"issues": {"vulnerabilities": [{"title": "no id or severity"}]}}
        async with _client(lambda request: httpx.Response(200, json=payload)) as client:
            with pytest.raises(SnykError, match="invalid test result payload"):
                await client.test_maven("org.acme", "lib", "1.0")


class TestNotificationSettings:
    async def test_ok(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"new-issues-remediations": {"enabled": True}})

        async with _client(handler) as client:
            data = await client.get_notification_settings("acme-org")
        assert seen[0].url.path == "/api/v1/org/acme-org/notification-settings"
        assert "new-issues-remediations" in data

    async def test_unexpected_payload(self):
        async with _client(lambda request: httpx.Response(200, content=json.dumps([1]))) as client:
            with pytest.raises(SnykError, match="unexpected"):
                await client.get_notification_settings("acme-org")


class TestFromSettings:
    async def test_uses_configured_url_and_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        settings = GateSettings(
            api_url="https://snyk.internal/api/v1",
            api_token="abc",
            api_user_agent="gate/1.0",
            api_trust_all_certificates=True,
        )
        async with SnykClient.from_settings(settings, transport=httpx.MockTransport(handler)) as client:
            await client.test_npm("lodash", "4.17.21")

        request = seen[0]
        assert request.url.host == "snyk.internal"
        assert request.url.path == "/api/v1/test/npm/lodash/4.17.21"
        assert request.headers["Authorization"] == "token abc"
        assert request.headers["User-Agent"] == "gate/1.0"
