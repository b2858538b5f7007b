"""TradeRepository: concrete implementation of TradeRepositoryProtocol.

State transitions are single guarded UPDATE ... RETURNING statements. The
guard `completed = FALSE AND cancelled = FALSE` is what makes a confirm and a
cancel racing on one trade resolve to exactly one winner: PostgreSQL row
locking serialises them, and the second finds the guard false and gets 0 rows.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.errors import InternalError
from src.ds_escrow.domain.models import Trade

_TRADE_COLUMNS = """
    id, seller, buyer, asset, amount, description,
    seller_deposited, buyer_confirmed, completed, cancelled, is_native,
    created_at, updated_at
"""

_INSERT_TRADE_SQL = text(f"""
    INSERT INTO trades (seller, buyer, asset, amount, description, is_native)
    VALUES (:seller, :buyer, :asset, :amount, :description, :is_native)
    RETURNING {_TRADE_COLUMNS}
""")

_GET_TRADE_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}
    FROM trades
    WHERE id = :trade_id
""")

_COMPLETE_TRADE_SQL = text(f"""
    UPDATE trades
    SET buyer_confirmed = TRUE,
        completed = TRUE,
        updated_at = NOW()
    WHERE id = :trade_id AND completed = FALSE AND cancelled = FALSE
    RETURNING {_TRADE_COLUMNS}
""")

_CANCEL_TRADE_SQL = text(f"""
    UPDATE trades
    SET cancelled = TRUE,
        updated_at = NOW()
    WHERE id = :trade_id
      AND buyer_confirmed = FALSE AND completed = FALSE AND cancelled = FALSE
    RETURNING {_TRADE_COLUMNS}
""")

_LIST_TRADES_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}
    FROM trades
    WHERE (
        (:role = 'ANY' AND (seller = :account OR buyer = :account))
        OR (:role = 'SELLER' AND seller = :account)
        OR (:role = 'BUYER' AND buyer = :account)
    )
      AND (
        CAST(:status AS VARCHAR) IS NULL
        OR (:status = 'PENDING' AND completed = FALSE AND cancelled = FALSE)
        OR (:status = 'COMPLETED' AND completed = TRUE)
        OR (:status = 'CANCELLED' AND cancelled = TRUE)
      )
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_trade(row: object) -> Trade:
    return Trade(
        id=int(row.id),  # type: ignore[attr-defined]
        seller=row.seller,  # type: ignore[attr-defined]
        buyer=row.buyer,  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        amount=int(row.amount),  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        seller_deposited=row.seller_deposited,  # type: ignore[attr-defined]
        buyer_confirmed=row.buyer_confirmed,  # type: ignore[attr-defined]
        completed=row.completed,  # type: ignore[attr-defined]
        cancelled=row.cancelled,  # type: ignore[attr-defined]
        is_native=row.is_native,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class TradeRepository:
    """Concrete repository: all transitions atomic at the SQL level."""

    async def create(
        self,
        db: AsyncSession,
        seller: str,
        buyer: str,
        asset: str,
        amount: int,
        description: str,
        is_native: bool,
    ) -> Trade:
        result = await db.execute(
            _INSERT_TRADE_SQL,
            {
                "seller": seller,
                "buyer": buyer,
                "asset": asset,
                "amount": amount,
                "description": description,
                "is_native": is_native,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Trade insert returned no rows: this should never happen")
        return _row_to_trade(row)

    async def get_by_id(self, db: AsyncSession, trade_id: int) -> Trade | None:
        result = await db.execute(_GET_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def mark_completed(self, db: AsyncSession, trade_id: int) -> Trade | None:
        result = await db.execute(_COMPLETE_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def mark_cancelled(self, db: AsyncSession, trade_id: int) -> Trade | None:
        result = await db.execute(_CANCEL_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def list_by_account(
        self,
        db: AsyncSession,
        account: str,
        role: str,
        status: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Trade]:
        result = await db.execute(
            _LIST_TRADES_SQL,
            {
                "account": account,
                "role": role,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_trade(row) for row in result.fetchall()]
