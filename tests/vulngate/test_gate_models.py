"""Tests for the gate value types."""

import pytest

from vulngate.core.exceptions import ConfigurationError
from vulngate.engines.gate.models import (
    ArtifactKey,
    ArtifactLayout,
    CachedDecision,
    Ecosystem,
    GateOutcome,
    Issue,
    IssueKind,
    ScanResult,
    Severity,
    SeverityCounts,
    Verdict,
    dedupe,
)


def vuln(issue_id: str, severity: Severity) -> Issue:
    return Issue(id=issue_id, severity=severity, kind=IssueKind.VULNERABILITY)


class TestSeverity:
    def test_ordering(self):
        assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL

    @pytest.mark.parametrize("text", ["high", "HIGH", "High", " high "])
    def test_parse_case_insensitive(self, text):
        assert Severity.parse(text) is Severity.HIGH

    @pytest.mark.parametrize("text", ["", "severe", "4", "lowest"])
    def test_parse_unknown_raises(self, text):
        with pytest.raises(ConfigurationError, match="unknown severity"):
            Severity.parse(text)

    def test_label(self):
        assert Severity.CRITICAL.label == "critical"


class TestSeverityCounts:
    def test_format(self):
        counts = SeverityCounts(critical=1, high=2, medium=3, low=4)
        assert counts.format() == "1 critical, 2 high, 3 medium, 4 low"

    def test_parse_roundtrip(self):
        counts = SeverityCounts(critical=0, high=12, medium=0, low=7)
        assert SeverityCounts.parse(counts.format()) == counts

    @pytest.mark.parametrize(
        "text",
        ["", "garbage", "1 critical, 2 high, 3 medium", "a critical, 0 high, 0 medium, 0 low"],
    )
    def test_parse_malformed(self, text):
        with pytest.raises(ValueError, match="malformed"):
            SeverityCounts.parse(text)

    def test_from_issues_dedupes(self):
        counts = SeverityCounts.from_issues(
            [vuln("A", Severity.HIGH), vuln("A", Severity.HIGH), vuln("B", Severity.LOW)]
        )
        assert counts == SeverityCounts(high=1, low=1)
        assert counts.total == 2

    def test_from_issues_every_record(self):
        counts = SeverityCounts.from_issues(
            [vuln("A", Severity.LOW), vuln("A", Severity.CRITICAL)], unique=False
        )
        assert counts == SeverityCounts(critical=1, low=1)

    def test_count(self):
        counts = SeverityCounts(medium=5)
        assert counts.count(Severity.MEDIUM) == 5
        assert counts.count(Severity.CRITICAL) == 0


class TestDedupe:
    def test_first_occurrence_wins(self):
        issues = dedupe([vuln("A", Severity.HIGH), vuln("A", Severity.LOW), vuln("B", Severity.LOW)])
        assert [(i.id, i.severity) for i in issues] == [("A", Severity.HIGH), ("B", Severity.LOW)]

    def test_empty(self):
        assert dedupe([]) == []


class TestReferenceUrl:
    def test_maven_joins_group_and_module(self):
        layout = ArtifactLayout(path="p", organization="org.acme", module="lib", base_revision="1.0")
        result = ScanResult(ecosystem=Ecosystem.MAVEN, layout=layout)
        assert result.reference_url("https://snyk.io/vuln/") == (
            "https://snyk.io/vuln/maven:org.acme%3Alib@1.0"
        )

    def test_npm(self):
        layout = ArtifactLayout(path="p", module="lodash", base_revision="4.17.21")
        result = ScanResult(ecosystem=Ecosystem.NPM, layout=layout)
        assert result.reference_url("https://snyk.io/vuln/") == (
            "https://snyk.io/vuln/npm:lodash@4.17.21"
        )

    def test_pip(self):
        layout = ArtifactLayout(path="p", module="requests", base_revision="2.31.0")
        result = ScanResult(ecosystem=Ecosystem.PYPI, layout=layout)
        assert result.reference_url("https://snyk.io/vuln/") == (
            "https://snyk.io/vuln/pip:requests@2.31.0"
        )


class TestMisc:
    def test_artifact_key_str(self):
        assert str(ArtifactKey(repo_key="libs", path="a/b.jar")) == "libs:a/b.jar"

    @pytest.mark.parametrize("path", ["a/b.jar", "/a/b.jar", "//a/b.jar", "  /a/b.jar "])
    def test_artifact_key_normalized(self, path):
        assert ArtifactKey.normalized(" libs", path) == ArtifactKey(repo_key="libs", path="a/b.jar")

    def test_layout_validity(self):
        assert ArtifactLayout(path="p", module="m", base_revision="1").is_valid
        assert not ArtifactLayout(path="p", module="m").is_valid
        assert not ArtifactLayout(path="p", base_revision="1").is_valid

    def test_cached_decision_flags(self):
        cached = CachedDecision(vulnerability_summary="x", licenses_force_download=True)
        assert cached.is_scanned
        assert not cached.force_download(IssueKind.VULNERABILITY)
        assert cached.force_download(IssueKind.LICENSE)
        assert not CachedDecision(vulnerability_summary="").is_scanned

    def test_outcomes(self):
        assert GateOutcome.allowed() == GateOutcome(Verdict.ALLOW, 200)
        assert GateOutcome.denied("no").status_code == 403
        assert GateOutcome.denied("no", status_code=500).blocked
        assert GateOutcome.error("boom") == GateOutcome(Verdict.ERROR, 500, "boom")
        assert not GateOutcome.allowed().blocked
