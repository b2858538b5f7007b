"""ds_vault REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.database import get_db_session
from src.ds_common.response import ApiResponse, respond
from src.ds_gateway.auth.dependencies import get_current_account
from src.ds_vault.application.schemas import VaultAmountRequest
from src.ds_vault.application.service import VaultApplicationService

router = APIRouter(prefix="/vault", tags=["vault"])

_service = VaultApplicationService()


@router.post("/deposit")
async def deposit(
    body: VaultAmountRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, account, body.asset, body.amount)
    return respond(request, data)


@router.post("/withdraw")
async def withdraw(
    body: VaultAmountRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, account, body.asset, body.amount)
    return respond(request, data)


@router.get("/accounts/{account}/balances")
async def list_balances(
    account: str,
    _caller: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_balances(db, account)
    return respond(request, data)


@router.get("/accounts/{account}/balances/{asset}")
async def get_balance(
    account: str,
    asset: str,
    _caller: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, account, asset)
    return respond(request, data)
