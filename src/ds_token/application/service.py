"""TokenApplicationService: allowance grants and balance reads.

`approve` is phase 1 of the client's approve-then-lock protocol. The engines
never look at whether it happened; they only fail with InsufficientAllowance
when a lock call arrives before the grant has committed.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.amounts import MAX_AMOUNT, validate_amount
from src.ds_common.database import unit_of_work
from src.ds_common.enums import Engine, LedgerEventType
from src.ds_common.errors import InvalidAmountError
from src.ds_common.events import EventLogProtocol, LedgerEvent, SqlEventLog
from src.ds_common.identifiers import validate_account, validate_asset
from src.ds_token.application.schemas import AllowanceResponse, BalanceResponse
from src.ds_token.domain.repository import TokenLedgerProtocol
from src.ds_token.infrastructure.persistence import SqlTokenLedger


class TokenApplicationService:
    def __init__(
        self,
        ledger: TokenLedgerProtocol | None = None,
        event_log: EventLogProtocol | None = None,
    ) -> None:
        self._ledger: TokenLedgerProtocol = ledger or SqlTokenLedger()
        self._events: EventLogProtocol = event_log or SqlEventLog()

    async def approve(
        self, db: AsyncSession, owner: str, spender: str, asset: str, amount: int
    ) -> AllowanceResponse:
        validate_account(owner)
        validate_account(spender)
        validate_asset(asset)
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(amount)
        if not 0 <= amount <= MAX_AMOUNT:
            raise InvalidAmountError(amount)
        async with unit_of_work(db):
            await self._ledger.approve(db, owner, spender, asset, amount)
            await self._events.append(
                db,
                LedgerEvent(
                    engine=Engine.TOKEN,
                    event_type=LedgerEventType.ALLOWANCE_SET,
                    entity_id=f"{owner}:{spender}:{asset}",
                    account=owner,
                    payload={"spender": spender, "asset": asset, "amount": amount},
                ),
            )
        return AllowanceResponse(owner=owner, spender=spender, asset=asset, amount=amount)

    async def get_balance(
        self, db: AsyncSession, account: str, asset: str
    ) -> BalanceResponse:
        validate_account(account)
        validate_asset(asset)
        amount = await self._ledger.balance_of(db, account, asset)
        return BalanceResponse.from_amount(account, asset, amount)

    async def get_allowance(
        self, db: AsyncSession, owner: str, spender: str, asset: str
    ) -> AllowanceResponse:
        validate_account(owner)
        validate_account(spender)
        validate_asset(asset)
        amount = await self._ledger.allowance(db, owner, spender, asset)
        return AllowanceResponse(owner=owner, spender=spender, asset=asset, amount=amount)

    async def faucet(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> BalanceResponse:
        """Credit simulated funds (local dev only; router gates on FAUCET_ENABLED)."""
        validate_account(account)
        validate_asset(asset)
        validate_amount(amount)
        async with unit_of_work(db):
            new_balance = await self._ledger.mint(db, account, asset, amount)
            await self._events.append(
                db,
                LedgerEvent(
                    engine=Engine.TOKEN,
                    event_type=LedgerEventType.FAUCET_MINT,
                    entity_id=f"{account}:{asset}",
                    account=account,
                    payload={"asset": asset, "amount": amount, "balance_after": new_balance},
                ),
            )
        return BalanceResponse.from_amount(account, asset, new_balance)
