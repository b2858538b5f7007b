"""ds_escrow REST API: trade lifecycle endpoints, all require a bearer token."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.database import get_db_session
from src.ds_common.enums import TradeRole, TradeStatus
from src.ds_common.response import ApiResponse, respond
from src.ds_escrow.application.schemas import CreateNativeTradeRequest, CreateTradeRequest
from src.ds_escrow.application.service import EscrowApplicationService
from src.ds_gateway.auth.dependencies import get_current_account

router = APIRouter(prefix="/escrow", tags=["escrow"])

_service = EscrowApplicationService()


@router.post("/trades")
async def create_trade(
    body: CreateTradeRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_trade(
        db, account, body.buyer, body.asset, body.amount, body.description
    )
    return respond(request, data)


@router.post("/trades/native")
async def create_trade_native(
    body: CreateNativeTradeRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_trade_native(
        db, account, body.buyer, body.amount, body.description
    )
    return respond(request, data)


@router.get("/trades")
async def list_trades(
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    role: TradeRole = Query(TradeRole.ANY, description="Seller side, buyer side, or both"),
    status: TradeStatus | None = Query(None, description="Filter by derived status"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_trades(db, account, role, status, cursor, limit)
    return respond(request, data)


@router.get("/trades/{trade_id}")
async def get_trade(
    trade_id: int,
    _account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_trade(db, trade_id)
    return respond(request, data)


@router.post("/trades/{trade_id}/confirm")
async def confirm_trade(
    trade_id: int,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.confirm_trade(db, account, trade_id)
    return respond(request, data)


@router.post("/trades/{trade_id}/cancel")
async def cancel_trade(
    trade_id: int,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_trade(db, account, trade_id)
    return respond(request, data)
