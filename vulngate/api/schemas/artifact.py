"""Artifact property request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ArtifactStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repo_key: str
    path: str
    scanned: bool
    vulnerability_summary: str | None
    license_summary: str | None
    issue_url: str | None
    vulnerabilities_force_download: bool
    vulnerabilities_force_download_info: str | None
    licenses_force_download: bool
    licenses_force_download_info: str | None


class ForceDownloadRequest(BaseModel):
    path: str
    kind: Literal["vulnerability", "license"]
    enabled: bool
    info: str | None = None
