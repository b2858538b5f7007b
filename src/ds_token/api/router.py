"""ds_token REST API: allowance grants and simulated balances."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ds_common.database import get_db_session
from src.ds_common.response import ApiResponse, respond
from src.ds_gateway.auth.dependencies import get_current_account
from src.ds_token.application.schemas import ApproveRequest, FaucetRequest
from src.ds_token.application.service import TokenApplicationService

router = APIRouter(prefix="/token", tags=["token"])

_service = TokenApplicationService()


@router.post("/approve")
async def approve(
    body: ApproveRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.approve(db, account, body.spender, body.asset, body.amount)
    return respond(request, data)


@router.get("/balance")
async def get_balance(
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    asset: str = Query(..., min_length=1, max_length=64),
) -> ApiResponse:
    data = await _service.get_balance(db, account, asset)
    return respond(request, data)


@router.get("/allowance")
async def get_allowance(
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    spender: str = Query(..., min_length=1, max_length=64),
    asset: str = Query(..., min_length=1, max_length=64),
) -> ApiResponse:
    data = await _service.get_allowance(db, account, spender, asset)
    return respond(request, data)


@router.post("/faucet")
async def faucet(
    body: FaucetRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    if not settings.FAUCET_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    data = await _service.faucet(db, account, body.asset, body.amount)
    return respond(request, data)
