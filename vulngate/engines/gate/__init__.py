"""Download gate engine: classify, scan, evaluate and cache per artifact."""

from vulngate.engines.gate.cache import DecisionCache, PropertyStore, PropertyStoreError
from vulngate.engines.gate.classifier import classify, route
from vulngate.engines.gate.evaluator import evaluate, evaluate_issues, summarize, tally
from vulngate.engines.gate.layout import inspect_layout
from vulngate.engines.gate.models import (
    ArtifactKey,
    ArtifactLayout,
    CachedDecision,
    Decision,
    Ecosystem,
    GateOutcome,
    Issue,
    IssueKind,
    ScanResult,
    Severity,
    SeverityCounts,
    Verdict,
)
from vulngate.engines.gate.orchestrator import ScanOrchestrator
from vulngate.engines.gate.scanners import PackageScanner, ScanUnavailableError, build_scanners

__all__ = [
    "ArtifactKey",
    "ArtifactLayout",
    "CachedDecision",
    "Decision",
    "DecisionCache",
    "Ecosystem",
    "GateOutcome",
    "Issue",
    "IssueKind",
    "PackageScanner",
    "PropertyStore",
    "PropertyStoreError",
    "ScanOrchestrator",
    "ScanResult",
    "ScanUnavailableError",
    "Severity",
    "SeverityCounts",
    "Verdict",
    "build_scanners",
    "classify",
    "evaluate",
    "evaluate_issues",
    "inspect_layout",
    "route",
    "summarize",
    "tally",
]
