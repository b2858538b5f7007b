"""ds_savings REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.database import get_db_session
from src.ds_common.response import ApiResponse, respond
from src.ds_gateway.auth.dependencies import get_current_account
from src.ds_savings.application.schemas import CreateSavingRequest
from src.ds_savings.application.service import SavingsApplicationService

router = APIRouter(prefix="/savings", tags=["savings"])

_service = SavingsApplicationService()


@router.post("")
async def create_saving(
    body: CreateSavingRequest,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_saving(
        db, account, body.amount, body.asset, body.lock_days, body.goal_name
    )
    return respond(request, data)


@router.post("/{index}/withdraw")
async def withdraw_saving(
    index: int,
    account: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw_saving(db, account, index)
    return respond(request, data)


@router.get("/accounts/{account}")
async def get_user_saving(
    account: str,
    _caller: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user_saving(db, account)
    return respond(request, data)


@router.get("/accounts/{account}/{index}/time-until-unlock")
async def get_time_until_unlock(
    account: str,
    index: int,
    _caller: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_time_until_unlock(db, account, index)
    return respond(request, data)
