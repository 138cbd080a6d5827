"""Gate router: the enforcement endpoint called before an artifact is served."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from vulngate.api.deps import get_orchestrator, get_session
from vulngate.api.schemas.gate import GateResponse
from vulngate.engines.gate.models import ArtifactKey
from vulngate.engines.gate.orchestrator import ScanOrchestrator

router = APIRouter()


@router.get(
    "/{repo_key}/{path:path}",
    response_model=GateResponse,
    responses={403: {"model": GateResponse}, 500: {"model": GateResponse}},
)
async def check_artifact(
    repo_key: str,
    path: str,
    session: AsyncSession = Depends(get_session),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Allow (200) or block (403 policy, 500 scan/config failure) a download."""
    outcome = await orchestrator.evaluate(session, ArtifactKey.normalized(repo_key, path))
    body = GateResponse(verdict=outcome.verdict.value, detail=outcome.reason)
    return JSONResponse(status_code=outcome.status_code, content=body.model_dump())
