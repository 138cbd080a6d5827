"""Policy evaluator: compare issue counts against a severity threshold.

Vulnerability and license checks are independent and share one shape; they
differ only in which severities they recognise (licenses have no CRITICAL).
"""

from __future__ import annotations

from collections.abc import Iterable

from vulngate.engines.gate.models import Decision, Issue, IssueKind, Severity, SeverityCounts

_RECOGNISED: dict[IssueKind, tuple[Severity, ...]] = {
    IssueKind.VULNERABILITY: (Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL),
    IssueKind.LICENSE: (Severity.MEDIUM, Severity.HIGH),
}

_NOUN = {
    IssueKind.VULNERABILITY: "vulnerabilities",
    IssueKind.LICENSE: "license issues",
}


def severity_band(kind: IssueKind, threshold: Severity) -> tuple[Severity, ...]:
    """Severities that block a download at *threshold* (LOW means "any issue")."""
    return tuple(s for s in _RECOGNISED[kind] if s >= threshold)


def summarize(issues: Iterable[Issue]) -> SeverityCounts:
    """Per-severity counts after deduplication by issue id; the persisted form."""
    return SeverityCounts.from_issues(issues)


def tally(issues: Iterable[Issue]) -> SeverityCounts:
    """Per-severity counts over every record.

    A repeated id may carry a different severity on each dependency path;
    each of those severities must still reach the threshold check.
    """
    return SeverityCounts.from_issues(issues, unique=False)


def evaluate(
    kind: IssueKind,
    counts: SeverityCounts,
    threshold: Severity,
    *,
    force_download: bool = False,
    artifact: str = "",
) -> Decision:
    """Render an allow/deny decision for one issue kind.

    The force-download override wins over everything else.
    """
    if force_download:
        return Decision.allow()

    noun = _NOUN[kind]
    if threshold is Severity.LOW:
        if counts.total > 0:
            return Decision.deny(f"artifact '{artifact}' has {noun}")
        return Decision.allow()

    band = severity_band(kind, threshold)
    if any(counts.count(severity) > 0 for severity in band):
        labels = " or ".join(severity.label for severity in band)
        return Decision.deny(f"artifact '{artifact}' has {noun} with severity {labels}")
    return Decision.allow()


def evaluate_issues(
    kind: IssueKind,
    issues: Iterable[Issue],
    threshold: Severity,
    *,
    force_download: bool = False,
    artifact: str = "",
) -> Decision:
    """Like :func:`evaluate`, starting from raw (possibly repeated) issues."""
    return evaluate(
        kind,
        tally(issues),
        threshold,
        force_download=force_download,
        artifact=artifact,
    )
