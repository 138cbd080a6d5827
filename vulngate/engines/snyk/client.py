"""Async Snyk v1 API client: package test endpoints and a credential check."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from vulngate.engines.snyk.models import SnykTestResult

if TYPE_CHECKING:
    from vulngate.core.config import GateSettings

log = structlog.get_logger("vulngate.snyk")


class SnykError(Exception):
    """Raised for transport failures, non-success responses and bad payloads."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def _segment(value: str) -> str:
    return quote(value, safe="")


class SnykClient:
    """Thin async wrapper around the Snyk REST API (v1).

    No retries: a failed call surfaces as :class:`SnykError` and the caller
    applies its own fail-open / fail-closed policy.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        user_agent: str = "vulngate",
        timeout: float = 10.0,
        verify: bool | str = True,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
        }
        if token:
            headers["Authorization"] = f"token {token}"
        kwargs: dict[str, Any] = {}
        if proxy:
            kwargs["proxy"] = proxy
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            verify=verify,
            **kwargs,
        )

    @classmethod
    def from_settings(
        cls,
        settings: GateSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> SnykClient:
        """Build a client from the ``snyk.api.*`` options."""
        verify: bool | str = True
        if settings.api_trust_all_certificates:
            log.warning("snyk.tls_verification_disabled")
            verify = False
        elif settings.api_ssl_certificate_path:
            verify = settings.api_ssl_certificate_path

        proxy = None
        if settings.api_http_proxy_host:
            proxy = f"http://{settings.api_http_proxy_host}:{settings.api_http_proxy_port}"

        return cls(
            settings.api_url,
            settings.api_token,
            user_agent=settings.api_user_agent,
            timeout=settings.api_timeout_ms / 1000,
            verify=verify,
            proxy=proxy,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SnykClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def test_maven(
        self,
        group_id: str,
        artifact_id: str,
        version: str,
        organization: str | None = None,
    ) -> SnykTestResult:
        path = f"test/maven/{_segment(group_id)}/{_segment(artifact_id)}/{_segment(version)}"
        return await self._test(path, organization)

    async def test_npm(
        self,
        package_name: str,
        version: str,
        organization: str | None = None,
    ) -> SnykTestResult:
        path = f"test/npm/{_segment(package_name)}/{_segment(version)}"
        return await self._test(path, organization)

    async def test_pip(
        self,
        package_name: str,
        version: str,
        organization: str | None = None,
    ) -> SnykTestResult:
        path = f"test/pip/{_segment(package_name)}/{_segment(version)}"
        return await self._test(path, organization)

    async def get_notification_settings(self, organization: str) -> dict[str, Any]:
        """Fetch the org's notification settings.

        Cheap authenticated call, used at startup to check the token and
        organization id.
        """
        data = await self._get(f"org/{_segment(organization)}/notification-settings")
        if not isinstance(data, dict):
            raise SnykError("unexpected notification settings payload")
        return data

    # ── internal ───────────────────────────────────────────────────────────

    async def _test(self, path: str, organization: str | None) -> SnykTestResult:
        params = {"org": organization} if organization else None
        data = await self._get(path, params)
        try:
            return SnykTestResult.model_validate(data)
        except ValidationError as exc:
            log.warning("snyk.invalid_payload", path=path, errors=exc.error_count())
            raise SnykError(f"invalid test result payload for {path}") from exc

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            log.warning("snyk.request_failed", path=path, error=type(exc).__name__)
            raise SnykError(f"request to {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            log.warning("snyk.bad_status", path=path, status=resp.status_code)
            raise SnykError(
                f"{path} returned HTTP {resp.status_code}", status_code=resp.status_code
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise SnykError(f"{path} returned a non-JSON body") from exc
