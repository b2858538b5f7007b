"""VaultRepository: concrete implementation of VaultRepositoryProtocol.

Deposits and withdrawals on one (account, asset) pair serialise on its
vault_balances row; different pairs never contend.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.amounts import MAX_AMOUNT
from src.ds_common.errors import BalanceOverflowError
from src.ds_vault.domain.models import VaultBalance, VaultMovement

_CREDIT_SQL = text("""
    INSERT INTO vault_balances (account, asset, amount)
    VALUES (:account, :asset, :amount)
    ON CONFLICT (account, asset) DO UPDATE
        SET amount = vault_balances.amount + EXCLUDED.amount,
            updated_at = NOW()
        WHERE vault_balances.amount + EXCLUDED.amount <= :max_amount
    RETURNING amount
""")

_DEBIT_SQL = text("""
    UPDATE vault_balances
    SET amount = amount - :amount,
        updated_at = NOW()
    WHERE account = :account AND asset = :asset AND amount >= :amount
    RETURNING amount
""")

_GET_BALANCE_SQL = text("""
    SELECT amount FROM vault_balances
    WHERE account = :account AND asset = :asset
""")

_LIST_BALANCES_SQL = text("""
    SELECT account, asset, amount, updated_at
    FROM vault_balances
    WHERE account = :account AND amount > 0
    ORDER BY asset ASC
""")

_INSERT_MOVEMENT_SQL = text("""
    INSERT INTO vault_movements (account, asset, movement_type, amount, balance_after)
    VALUES (:account, :asset, :movement_type, :amount, :balance_after)
""")


class VaultRepository:
    async def credit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int:
        result = await db.execute(
            _CREDIT_SQL,
            {"account": account, "asset": asset, "amount": amount, "max_amount": MAX_AMOUNT},
        )
        row = result.fetchone()
        if row is None:
            raise BalanceOverflowError(account, asset)
        return int(row.amount)

    async def debit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int | None:
        result = await db.execute(
            _DEBIT_SQL, {"account": account, "asset": asset, "amount": amount}
        )
        row = result.fetchone()
        return int(row.amount) if row else None

    async def get_balance(self, db: AsyncSession, account: str, asset: str) -> int:
        result = await db.execute(_GET_BALANCE_SQL, {"account": account, "asset": asset})
        row = result.fetchone()
        return int(row.amount) if row else 0

    async def list_balances(
        self, db: AsyncSession, account: str
    ) -> list[VaultBalance]:
        result = await db.execute(_LIST_BALANCES_SQL, {"account": account})
        return [
            VaultBalance(
                account=row.account,
                asset=row.asset,
                amount=int(row.amount),
                updated_at=row.updated_at,
            )
            for row in result.fetchall()
        ]

    async def record_movement(
        self, db: AsyncSession, movement: VaultMovement
    ) -> None:
        await db.execute(
            _INSERT_MOVEMENT_SQL,
            {
                "account": movement.account,
                "asset": movement.asset,
                "movement_type": movement.movement_type.value,
                "amount": movement.amount,
                "balance_after": movement.balance_after,
            },
        )
