"""Artifacts router: cached decisions and operator overrides."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vulngate.api.deps import get_artifact_service, get_session
from vulngate.api.schemas.artifact import ArtifactStatusResponse, ForceDownloadRequest
from vulngate.engines.gate.models import ArtifactKey, IssueKind
from vulngate.services.artifact_service import ArtifactService

router = APIRouter()


@router.get("/{repo_key}/status", response_model=ArtifactStatusResponse)
async def get_artifact_status(
    repo_key: str,
    path: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    svc: ArtifactService = Depends(get_artifact_service),
) -> ArtifactStatusResponse:
    key = ArtifactKey.normalized(repo_key, path)
    cached = await svc.get_status(session, key)
    return ArtifactStatusResponse(
        repo_key=key.repo_key,
        path=key.path,
        scanned=cached.is_scanned,
        vulnerability_summary=cached.vulnerability_summary,
        license_summary=cached.license_summary,
        issue_url=cached.issue_url,
        vulnerabilities_force_download=cached.vulnerabilities_force_download,
        vulnerabilities_force_download_info=cached.vulnerabilities_force_download_info,
        licenses_force_download=cached.licenses_force_download,
        licenses_force_download_info=cached.licenses_force_download_info,
    )


@router.put("/{repo_key}/force-download", status_code=204)
async def set_force_download(
    repo_key: str,
    body: ForceDownloadRequest,
    session: AsyncSession = Depends(get_session),
    svc: ArtifactService = Depends(get_artifact_service),
) -> None:
    await svc.set_force_download(
        session,
        ArtifactKey.normalized(repo_key, body.path),
        IssueKind(body.kind),
        enabled=body.enabled,
        info=body.info,
    )


@router.delete("/{repo_key}/scan", status_code=204)
async def clear_artifact_scan(
    repo_key: str,
    path: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    svc: ArtifactService = Depends(get_artifact_service),
) -> None:
    await svc.clear_scan(session, ArtifactKey.normalized(repo_key, path))
