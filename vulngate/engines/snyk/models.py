"""Response models for the Snyk v1 test API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SnykIssue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    severity: str
    title: str | None = None
    url: str | None = None


class SnykIssues(BaseModel):
    model_config = ConfigDict(extra="ignore")

    vulnerabilities: list[SnykIssue] = Field(default_factory=list)
    licenses: list[SnykIssue] = Field(default_factory=list)


class SnykTestResult(BaseModel):
    """Body of ``GET test/<package-manager>/...``.

    ``ok`` is false whenever any issue was found; it does not signal an
    API failure.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    ok: bool = True
    issues: SnykIssues = Field(default_factory=SnykIssues)
    dependency_count: int = Field(0, alias="dependencyCount")
