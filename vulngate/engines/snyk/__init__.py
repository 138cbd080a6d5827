"""Snyk API client."""

from vulngate.engines.snyk.client import SnykClient, SnykError
from vulngate.engines.snyk.models import SnykIssue, SnykTestResult

__all__ = ["SnykClient", "SnykError", "SnykIssue", "SnykTestResult"]
