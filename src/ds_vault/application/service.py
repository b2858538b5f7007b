"""VaultApplicationService: free-standing multi-token balances.

Deposit pulls through the caller's allowance to the vault custody account;
withdraw pushes back out. Every balance change also writes one
vault_movements line, so the journal always sums to the balance.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ds_common.amounts import validate_amount
from src.ds_common.database import unit_of_work
from src.ds_common.enums import Engine, LedgerEventType, VaultMovementType
from src.ds_common.errors import InsufficientVaultBalanceError
from src.ds_common.events import EventLogProtocol, LedgerEvent, SqlEventLog
from src.ds_common.identifiers import validate_account, validate_asset
from src.ds_token.domain.repository import TokenLedgerProtocol
from src.ds_token.infrastructure.persistence import SqlTokenLedger
from src.ds_vault.application.schemas import (
    VaultBalanceListResponse,
    VaultBalanceResponse,
)
from src.ds_vault.domain.models import VaultMovement
from src.ds_vault.domain.repository import VaultRepositoryProtocol
from src.ds_vault.infrastructure.persistence import VaultRepository


class VaultApplicationService:
    def __init__(
        self,
        repo: VaultRepositoryProtocol | None = None,
        ledger: TokenLedgerProtocol | None = None,
        event_log: EventLogProtocol | None = None,
        custody_account: str | None = None,
    ) -> None:
        self._repo: VaultRepositoryProtocol = repo or VaultRepository()
        self._ledger: TokenLedgerProtocol = ledger or SqlTokenLedger()
        self._events: EventLogProtocol = event_log or SqlEventLog()
        self._custody = custody_account or settings.VAULT_CUSTODY_ACCOUNT

    async def deposit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> VaultBalanceResponse:
        validate_account(account)
        validate_asset(asset)
        validate_amount(amount)
        async with unit_of_work(db):
            await self._ledger.transfer_from(
                db, self._custody, account, self._custody, asset, amount
            )
            balance_after = await self._repo.credit(db, account, asset, amount)
            await self._journal(
                db, account, asset, VaultMovementType.DEPOSIT, amount, balance_after
            )
        return VaultBalanceResponse.from_amount(account, asset, balance_after)

    async def withdraw(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> VaultBalanceResponse:
        validate_account(account)
        validate_asset(asset)
        validate_amount(amount)
        async with unit_of_work(db):
            # token rows before the vault row, same as deposit
            await self._ledger.lock_balances(db, asset, account, self._custody)
            balance_after = await self._repo.debit(db, account, asset, amount)
            if balance_after is None:
                available = await self._repo.get_balance(db, account, asset)
                raise InsufficientVaultBalanceError(amount, available)
            await self._ledger.transfer(db, self._custody, account, asset, amount)
            await self._journal(
                db, account, asset, VaultMovementType.WITHDRAW, amount, balance_after
            )
        return VaultBalanceResponse.from_amount(account, asset, balance_after)

    async def get_balance(
        self, db: AsyncSession, account: str, asset: str
    ) -> VaultBalanceResponse:
        validate_account(account)
        validate_asset(asset)
        amount = await self._repo.get_balance(db, account, asset)
        return VaultBalanceResponse.from_amount(account, asset, amount)

    async def list_balances(
        self, db: AsyncSession, account: str
    ) -> VaultBalanceListResponse:
        """The "My Vault" view: every asset with a non-zero balance."""
        validate_account(account)
        balances = await self._repo.list_balances(db, account)
        return VaultBalanceListResponse(
            account=account,
            balances=[
                VaultBalanceResponse.from_amount(b.account, b.asset, b.amount)
                for b in balances
                if b.amount > 0
            ],
        )

    async def _journal(
        self,
        db: AsyncSession,
        account: str,
        asset: str,
        movement_type: VaultMovementType,
        amount: int,
        balance_after: int,
    ) -> None:
        await self._repo.record_movement(
            db,
            VaultMovement(
                account=account,
                asset=asset,
                movement_type=movement_type,
                amount=amount,
                balance_after=balance_after,
            ),
        )
        event_type = (
            LedgerEventType.VAULT_DEPOSITED
            if movement_type == VaultMovementType.DEPOSIT
            else LedgerEventType.VAULT_WITHDRAWN
        )
        await self._events.append(
            db,
            LedgerEvent(
                engine=Engine.VAULT,
                event_type=event_type,
                entity_id=f"{account}:{asset}",
                account=account,
                payload={"asset": asset, "amount": amount, "balance_after": balance_after},
            ),
        )
