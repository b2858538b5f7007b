"""Custody audit REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_audit.domain.invariants import verify_custody_invariants
from src.ds_common.database import get_db_session
from src.ds_common.response import ApiResponse, respond
from src.ds_gateway.auth.dependencies import get_current_account

router = APIRouter(prefix="/audit", tags=["audit"])


class CustodyAuditResponse(BaseModel):
    ok: bool
    violations: list[str]


@router.get("/custody")
async def audit_custody(
    _caller: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    violations = await verify_custody_invariants(db)
    return respond(request, CustodyAuditResponse(ok=not violations, violations=violations))
