"""Gate check response schema."""

from __future__ import annotations

from pydantic import BaseModel


class GateResponse(BaseModel):
    verdict: str
    detail: str | None = None
