"""Ecosystem scanners: one capability interface, one implementation per ecosystem."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

from vulngate.core.exceptions import ConfigurationError
from vulngate.engines.gate.models import (
    ArtifactLayout,
    Ecosystem,
    Issue,
    IssueKind,
    ScanResult,
    Severity,
)
from vulngate.engines.snyk.client import SnykClient, SnykError
from vulngate.engines.snyk.models import SnykIssue, SnykTestResult

if TYPE_CHECKING:
    from vulngate.core.config import GateSettings

log = structlog.get_logger("vulngate.engine")


class ScanUnavailableError(Exception):
    """The scan could not be performed (network, upstream or payload failure)."""


@runtime_checkable
class PackageScanner(Protocol):
    """Interface that every ecosystem scanner must satisfy."""

    ecosystem: Ecosystem

    async def scan(self, layout: ArtifactLayout) -> ScanResult: ...


def _issues(raw: list[SnykIssue], kind: IssueKind) -> tuple[Issue, ...]:
    issues = []
    for item in raw:
        try:
            severity = Severity.parse(item.severity)
        except ConfigurationError as exc:
            raise ScanUnavailableError(
                f"upstream reported unknown severity {item.severity!r} for {item.id}"
            ) from exc
        issues.append(Issue(id=item.id, severity=severity, kind=kind, title=item.title, url=item.url))
    return tuple(issues)


def to_scan_result(
    ecosystem: Ecosystem, layout: ArtifactLayout, result: SnykTestResult
) -> ScanResult:
    """Convert a Snyk test payload into a :class:`ScanResult`."""
    return ScanResult(
        ecosystem=ecosystem,
        layout=layout,
        vulnerabilities=_issues(result.issues.vulnerabilities, IssueKind.VULNERABILITY),
        licenses=_issues(result.issues.licenses, IssueKind.LICENSE),
        dependency_count=result.dependency_count,
    )


async def _run(
    ecosystem: Ecosystem,
    layout: ArtifactLayout,
    call: Callable[[], Awaitable[SnykTestResult]],
) -> ScanResult:
    try:
        result = await call()
    except SnykError as exc:
        log.warning(
            "scanner.failed",
            ecosystem=ecosystem.value,
            path=layout.path,
            status=exc.status_code,
            error=str(exc),
        )
        raise ScanUnavailableError(str(exc)) from exc
    scan_result = to_scan_result(ecosystem, layout, result)
    log.debug(
        "scanner.done",
        ecosystem=ecosystem.value,
        path=layout.path,
        ok=result.ok,
        vulnerabilities=len(scan_result.vulnerabilities),
        licenses=len(scan_result.licenses),
    )
    return scan_result


class MavenScanner:
    ecosystem = Ecosystem.MAVEN

    def __init__(self, client: SnykClient, organization: str | None = None) -> None:
        self._client = client
        self._organization = organization or None

    async def scan(self, layout: ArtifactLayout) -> ScanResult:
        return await _run(
            self.ecosystem,
            layout,
            lambda: self._client.test_maven(
                layout.organization or "",
                layout.module or "",
                layout.base_revision or "",
                organization=self._organization,
            ),
        )


class NpmScanner:
    ecosystem = Ecosystem.NPM

    def __init__(self, client: SnykClient, organization: str | None = None) -> None:
        self._client = client
        self._organization = organization or None

    async def scan(self, layout: ArtifactLayout) -> ScanResult:
        return await _run(
            self.ecosystem,
            layout,
            lambda: self._client.test_npm(
                layout.module or "",
                layout.base_revision or "",
                organization=self._organization,
            ),
        )


class PythonScanner:
    ecosystem = Ecosystem.PYPI

    def __init__(self, client: SnykClient, organization: str | None = None) -> None:
        self._client = client
        self._organization = organization or None

    async def scan(self, layout: ArtifactLayout) -> ScanResult:
        return await _run(
            self.ecosystem,
            layout,
            lambda: self._client.test_pip(
                layout.module or "",
                layout.base_revision or "",
                organization=self._organization,
            ),
        )


def build_scanners(client: SnykClient, settings: GateSettings) -> dict[Ecosystem, PackageScanner]:
    """Return the scanner for every supported ecosystem, sharing one client."""
    organization = settings.api_organization
    return {
        Ecosystem.MAVEN: MavenScanner(client, organization),
        Ecosystem.NPM: NpmScanner(client, organization),
        Ecosystem.PYPI: PythonScanner(client, organization),
    }
