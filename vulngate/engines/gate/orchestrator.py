"""ScanOrchestrator: per-artifact decision pipeline.

START → CLASSIFIED → {SKIPPED | CACHE_HIT | SCANNING} → {EVALUATED | SCAN_FAILED}
→ TERMINAL(allow | deny | error)

Everything runs inside the caller's request: there is no background work
and no lock around the upstream call, so concurrent first requests for the
same artifact may each scan it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from vulngate.core.exceptions import ConfigurationError
from vulngate.engines.gate.cache import DecisionCache, PropertyStoreError
from vulngate.engines.gate.classifier import Disabled, Unsupported, route
from vulngate.engines.gate.evaluator import evaluate, summarize, tally
from vulngate.engines.gate.layout import inspect_layout
from vulngate.engines.gate.models import (
    ArtifactKey,
    CachedDecision,
    Ecosystem,
    GateOutcome,
    IssueKind,
    SeverityCounts,
)
from vulngate.engines.gate.scanners import PackageScanner, ScanUnavailableError

if TYPE_CHECKING:
    from vulngate.core.config import GateSettings

log = structlog.get_logger("vulngate.engine")


class ScanOrchestrator:
    """Turn an artifact request into a :class:`GateOutcome`.

    This is the only place where configuration errors, scan failures and
    policy denials are converted into outcomes for the enforcement boundary.
    """

    def __init__(
        self,
        cache: DecisionCache,
        scanners: Mapping[Ecosystem, PackageScanner],
        settings: Callable[[], GateSettings],
    ) -> None:
        self._cache = cache
        self._scanners = scanners
        self._settings = settings

    async def evaluate(self, session: Any, key: ArtifactKey) -> GateOutcome:
        artifact = str(key)
        if not key.path:
            log.warning("gate.invalid_artifact", artifact=artifact, reason="missing path")
            return GateOutcome.allowed()

        try:
            settings = self._settings()
        except ConfigurationError as exc:
            log.error("gate.configuration_error", artifact=artifact, error=str(exc))
            return GateOutcome.error(f"artifact '{artifact}' cannot be checked: {exc}")

        # ── CLASSIFIED ───────────────────────────────────────────────────
        target = route(key.path, settings)
        if isinstance(target, Unsupported):
            log.warning("gate.skipped_unsupported", artifact=artifact)
            return GateOutcome.allowed()
        if isinstance(target, Disabled):
            log.debug(
                "gate.skipped_disabled", artifact=artifact, ecosystem=target.ecosystem.value
            )
            return GateOutcome.allowed()

        # ── CACHE_HIT ────────────────────────────────────────────────────
        try:
            cached = await self._cache.read(session, key)
        except PropertyStoreError as exc:
            log.error("gate.cache_read_failed", artifact=artifact, error=str(exc))
            return GateOutcome.error(f"cached decision for artifact '{artifact}' cannot be read")
        if cached is not None and cached.is_scanned:
            log.debug("gate.cache_hit", artifact=artifact)
            return self._from_cache(cached, settings, artifact)

        layout = inspect_layout(key)
        if not layout.is_valid:
            log.warning(
                "gate.invalid_layout",
                artifact=artifact,
                ecosystem=target.ecosystem.value,
                module=layout.module,
                revision=layout.base_revision,
            )
            return GateOutcome.allowed()

        # ── SCANNING ─────────────────────────────────────────────────────
        scanner = self._scanners[target.ecosystem]
        try:
            result = await scanner.scan(layout)
        except ScanUnavailableError as exc:
            return self._on_scan_failure(settings, artifact, exc)

        # ── EVALUATED ────────────────────────────────────────────────────
        vulnerabilities = summarize(result.vulnerabilities)
        licenses = summarize(result.licenses)
        await self._cache.write(
            session,
            key,
            CachedDecision(
                vulnerability_summary=vulnerabilities.format(),
                license_summary=licenses.format(),
                issue_url=result.reference_url(settings.issue_url),
            ),
        )
        # The stored summary counts each id once; this decision sees every record.
        return self._decide(
            tally(result.vulnerabilities),
            tally(result.licenses),
            cached or CachedDecision(),
            settings,
            artifact,
        )

    def _from_cache(
        self, cached: CachedDecision, settings: GateSettings, artifact: str
    ) -> GateOutcome:
        try:
            vulnerabilities = SeverityCounts.parse(cached.vulnerability_summary or "")
            licenses = SeverityCounts.parse(cached.license_summary or "")
        except ValueError as exc:
            log.error("gate.cache_unreadable", artifact=artifact, error=str(exc))
            return GateOutcome.error(f"cached scan summary for artifact '{artifact}' is unreadable")
        return self._decide(vulnerabilities, licenses, cached, settings, artifact)

    @staticmethod
    def _decide(
        vulnerabilities: SeverityCounts,
        licenses: SeverityCounts,
        overrides: CachedDecision,
        settings: GateSettings,
        artifact: str,
    ) -> GateOutcome:
        checks = (
            (IssueKind.VULNERABILITY, vulnerabilities, settings.vulnerability_threshold),
            (IssueKind.LICENSE, licenses, settings.license_threshold),
        )
        decisions = []
        for kind, counts, threshold in checks:
            force_download = overrides.force_download(kind)
            if force_download:
                log.info("gate.force_download", artifact=artifact, kind=kind.value)
            decisions.append(
                evaluate(kind, counts, threshold, force_download=force_download, artifact=artifact)
            )

        for decision in decisions:
            if not decision.allowed:
                log.info("gate.denied", artifact=artifact, reason=decision.reason)
                return GateOutcome.denied(decision.reason or f"artifact '{artifact}' is blocked")
        return GateOutcome.allowed()

    @staticmethod
    def _on_scan_failure(
        settings: GateSettings, artifact: str, exc: ScanUnavailableError
    ) -> GateOutcome:
        if settings.block_on_api_failure:
            log.error("gate.scan_failed_blocked", artifact=artifact, error=str(exc))
            return GateOutcome.denied(
                f"artifact '{artifact}' could not be scanned because the Snyk API is not available",
                status_code=500,
            )
        # Nothing is cached: an unscanned artifact must not look scanned.
        log.warning(
            "gate.scan_failed_allowed",
            artifact=artifact,
            error=str(exc),
            setting="snyk.scanner.block-on-api-failure",
        )
        return GateOutcome.allowed()
