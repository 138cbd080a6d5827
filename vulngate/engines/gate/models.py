"""Value types for the download gate engine."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, IntEnum

from vulngate.core.exceptions import ConfigurationError


class Severity(IntEnum):
    """Issue severity, ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> Severity:
        """Case-insensitive lookup by name.

        Raises :class:`ConfigurationError` for anything that is not one of
        the four names.
        """
        if isinstance(text, str):
            member = cls.__members__.get(text.strip().upper())
            if member is not None:
                return member
        raise ConfigurationError(
            f"unknown severity {text!r}, expected one of: low, medium, high, critical"
        )


class Ecosystem(str, Enum):
    """Package ecosystem; the value doubles as the reference-URL tag."""

    MAVEN = "maven"
    NPM = "npm"
    PYPI = "pip"
    UNSUPPORTED = "unsupported"


class IssueKind(str, Enum):
    VULNERABILITY = "vulnerability"
    LICENSE = "license"


@dataclass(frozen=True)
class Issue:
    """A single reported vulnerability or license problem.

    ``id`` is not unique per record: the same CVE reached through two
    dependency paths shows up twice.
    """

    id: str
    severity: Severity
    kind: IssueKind
    title: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class ArtifactKey:
    """Identity of a stored artifact: repository key plus path inside it."""

    repo_key: str
    path: str

    def __str__(self) -> str:
        return f"{self.repo_key}:{self.path}"

    @classmethod
    def normalized(cls, repo_key: str, path: str) -> ArtifactKey:
        """Build a key from request input: whitespace and leading slashes are dropped."""
        return cls(repo_key=repo_key.strip(), path=path.strip().lstrip("/"))


@dataclass(frozen=True)
class ArtifactLayout:
    """Coordinates resolved from an artifact path."""

    path: str
    organization: str | None = None
    module: str | None = None
    base_revision: str | None = None
    ext: str | None = None
    classifier: str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.module and self.base_revision)


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one upstream test call. Never mutated after creation."""

    ecosystem: Ecosystem
    layout: ArtifactLayout
    vulnerabilities: tuple[Issue, ...] = ()
    licenses: tuple[Issue, ...] = ()
    dependency_count: int = 0

    def reference_url(self, issue_url: str) -> str:
        """Build the user-facing issue page URL for this artifact."""
        layout = self.layout
        if self.ecosystem is Ecosystem.MAVEN:
            coordinates = f"{layout.organization}%3A{layout.module}"
        else:
            coordinates = f"{layout.module}"
        return f"{issue_url}{self.ecosystem.value}:{coordinates}@{layout.base_revision}"


def dedupe(issues: Iterable[Issue]) -> list[Issue]:
    """Drop repeated issue ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[Issue] = []
    for issue in issues:
        if issue.id in seen:
            continue
        seen.add(issue.id)
        unique.append(issue)
    return unique


_SUMMARY_RE = re.compile(r"^(\d+) critical, (\d+) high, (\d+) medium, (\d+) low$")


@dataclass(frozen=True)
class SeverityCounts:
    """Per-severity issue counts; the persisted form of a scan summary."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_issues(cls, issues: Iterable[Issue], *, unique: bool = True) -> SeverityCounts:
        """Count *issues* per severity; with ``unique`` a repeated id counts once."""
        counts = {severity: 0 for severity in Severity}
        for issue in dedupe(issues) if unique else issues:
            counts[issue.severity] += 1
        return cls(
            critical=counts[Severity.CRITICAL],
            high=counts[Severity.HIGH],
            medium=counts[Severity.MEDIUM],
            low=counts[Severity.LOW],
        )

    @classmethod
    def parse(cls, text: str) -> SeverityCounts:
        """Parse a summary produced by :meth:`format`.

        Raises ``ValueError`` on any other text.
        """
        match = _SUMMARY_RE.match(text.strip())
        if match is None:
            raise ValueError(f"malformed issue summary: {text!r}")
        critical, high, medium, low = (int(group) for group in match.groups())
        return cls(critical=critical, high=high, medium=medium, low=low)

    def count(self, severity: Severity) -> int:
        return getattr(self, severity.label)

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    def format(self) -> str:
        return f"{self.critical} critical, {self.high} high, {self.medium} medium, {self.low} low"


@dataclass(frozen=True)
class CachedDecision:
    """Scan outcome persisted as artifact properties."""

    vulnerability_summary: str | None = None
    license_summary: str | None = None
    issue_url: str | None = None
    vulnerabilities_force_download: bool = False
    vulnerabilities_force_download_info: str | None = None
    licenses_force_download: bool = False
    licenses_force_download_info: str | None = None

    @property
    def is_scanned(self) -> bool:
        return bool(self.vulnerability_summary)

    def force_download(self, kind: IssueKind) -> bool:
        if kind is IssueKind.VULNERABILITY:
            return self.vulnerabilities_force_download
        return self.licenses_force_download


@dataclass(frozen=True)
class Decision:
    """Allow/deny result of one policy check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> Decision:
        return cls(allowed=False, reason=reason)


class Verdict(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    ERROR = "error"


@dataclass(frozen=True)
class GateOutcome:
    """Final answer handed to the enforcement boundary."""

    verdict: Verdict
    status_code: int
    reason: str | None = None

    @classmethod
    def allowed(cls) -> GateOutcome:
        return cls(verdict=Verdict.ALLOW, status_code=200)

    @classmethod
    def denied(cls, reason: str, status_code: int = 403) -> GateOutcome:
        return cls(verdict=Verdict.DENY, status_code=status_code, reason=reason)

    @classmethod
    def error(cls, reason: str) -> GateOutcome:
        return cls(verdict=Verdict.ERROR, status_code=500, reason=reason)

    @property
    def blocked(self) -> bool:
        return self.verdict is not Verdict.ALLOW
