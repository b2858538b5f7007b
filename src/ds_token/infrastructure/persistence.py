"""SqlTokenLedger: simulated token ledger, concrete TokenLedgerProtocol.

Every debit is a single guarded UPDATE ... WHERE amount >= :amount RETURNING.
Zero rows returned means the source lacked balance or allowance, and nothing
was changed by that statement.

Both balance rows of a transfer are locked up front in account order, so a
lock (user -> custody) and a release (custody -> user) on the same asset
queue on the same first row instead of deadlocking. Credits are capped at
MAX_AMOUNT; the upsert returns no row when the cap would be crossed.

Transaction ownership: the CALLER commits or rolls back (see unit_of_work).
An allowance debit followed by a failing balance debit is undone by that
rollback.
"""

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.amounts import MAX_AMOUNT
from src.ds_common.errors import (
    BalanceOverflowError,
    InsufficientAllowanceError,
    InsufficientFundsError,
)

_LOCK_BALANCES_SQL = text("""
    SELECT account FROM token_balances
    WHERE asset = :asset AND account IN :accounts
    ORDER BY account
    FOR UPDATE
""").bindparams(bindparam("accounts", expanding=True))

_DEBIT_BALANCE_SQL = text("""
    UPDATE token_balances
    SET amount = amount - :amount,
        updated_at = NOW()
    WHERE account = :account AND asset = :asset AND amount >= :amount
    RETURNING amount
""")

_CREDIT_BALANCE_SQL = text("""
    INSERT INTO token_balances (account, asset, amount)
    VALUES (:account, :asset, :amount)
    ON CONFLICT (account, asset) DO UPDATE
        SET amount = token_balances.amount + EXCLUDED.amount,
            updated_at = NOW()
        WHERE token_balances.amount + EXCLUDED.amount <= :max_amount
    RETURNING amount
""")

_GET_BALANCE_SQL = text("""
    SELECT amount FROM token_balances
    WHERE account = :account AND asset = :asset
""")

_DEBIT_ALLOWANCE_SQL = text("""
    UPDATE token_allowances
    SET amount = amount - :amount,
        updated_at = NOW()
    WHERE owner = :owner AND spender = :spender AND asset = :asset
      AND amount >= :amount
    RETURNING amount
""")

_SET_ALLOWANCE_SQL = text("""
    INSERT INTO token_allowances (owner, spender, asset, amount)
    VALUES (:owner, :spender, :asset, :amount)
    ON CONFLICT (owner, spender, asset) DO UPDATE
        SET amount = EXCLUDED.amount,
            updated_at = NOW()
""")

_GET_ALLOWANCE_SQL = text("""
    SELECT amount FROM token_allowances
    WHERE owner = :owner AND spender = :spender AND asset = :asset
""")


class SqlTokenLedger:
    """Concrete token ledger: all debits atomic at the SQL level."""

    async def balance_of(self, db: AsyncSession, account: str, asset: str) -> int:
        result = await db.execute(_GET_BALANCE_SQL, {"account": account, "asset": asset})
        row = result.fetchone()
        return int(row.amount) if row else 0

    async def allowance(
        self, db: AsyncSession, owner: str, spender: str, asset: str
    ) -> int:
        result = await db.execute(
            _GET_ALLOWANCE_SQL, {"owner": owner, "spender": spender, "asset": asset}
        )
        row = result.fetchone()
        return int(row.amount) if row else 0

    async def lock_balances(self, db: AsyncSession, asset: str, *accounts: str) -> None:
        await db.execute(
            _LOCK_BALANCES_SQL, {"asset": asset, "accounts": sorted(set(accounts))}
        )

    async def transfer(
        self, db: AsyncSession, owner: str, recipient: str, asset: str, amount: int
    ) -> None:
        await self.lock_balances(db, asset, owner, recipient)
        result = await db.execute(
            _DEBIT_BALANCE_SQL, {"account": owner, "asset": asset, "amount": amount}
        )
        if result.fetchone() is None:
            available = await self.balance_of(db, owner, asset)
            raise InsufficientFundsError(amount, available)
        await self._credit(db, recipient, asset, amount)

    async def transfer_from(
        self,
        db: AsyncSession,
        spender: str,
        owner: str,
        recipient: str,
        asset: str,
        amount: int,
    ) -> None:
        result = await db.execute(
            _DEBIT_ALLOWANCE_SQL,
            {"owner": owner, "spender": spender, "asset": asset, "amount": amount},
        )
        if result.fetchone() is None:
            granted = await self.allowance(db, owner, spender, asset)
            raise InsufficientAllowanceError(amount, granted)
        await self.transfer(db, owner, recipient, asset, amount)

    async def approve(
        self, db: AsyncSession, owner: str, spender: str, asset: str, amount: int
    ) -> None:
        await db.execute(
            _SET_ALLOWANCE_SQL,
            {"owner": owner, "spender": spender, "asset": asset, "amount": amount},
        )

    async def mint(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int:
        return await self._credit(db, account, asset, amount)

    async def _credit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int:
        result = await db.execute(
            _CREDIT_BALANCE_SQL,
            {"account": account, "asset": asset, "amount": amount, "max_amount": MAX_AMOUNT},
        )
        row = result.fetchone()
        if row is None:
            raise BalanceOverflowError(account, asset)
        return int(row.amount)
