"""SavingsRepository: concrete implementation of SavingsRepositoryProtocol.

Index allocation goes through one savings_counters row per account, bumped
with INSERT ... ON CONFLICT DO UPDATE ... RETURNING. Two creates for the same
account serialise on that row; creates for different accounts never touch the
same row.

Withdrawal is a single guarded UPDATE; 0 rows means the entry was already
withdrawn or is still locked at :now, and nothing changed.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.errors import InternalError
from src.ds_savings.domain.models import SavingsEntry

_ENTRY_COLUMNS = """
    account, entry_index, asset, amount, unlock_time, goal_name,
    withdrawn, created_at, withdrawn_at
"""

_NEXT_INDEX_SQL = text("""
    INSERT INTO savings_counters (account, next_index)
    VALUES (:account, 1)
    ON CONFLICT (account) DO UPDATE
        SET next_index = savings_counters.next_index + 1
    RETURNING next_index - 1 AS allocated
""")

_INSERT_ENTRY_SQL = text(f"""
    INSERT INTO savings_entries
        (account, entry_index, asset, amount, unlock_time, goal_name, created_at)
    VALUES
        (:account, :entry_index, :asset, :amount, :unlock_time, :goal_name, :created_at)
    RETURNING {_ENTRY_COLUMNS}
""")

_GET_ENTRY_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM savings_entries
    WHERE account = :account AND entry_index = :entry_index
""")

_WITHDRAW_ENTRY_SQL = text(f"""
    UPDATE savings_entries
    SET withdrawn = TRUE,
        withdrawn_at = :now
    WHERE account = :account
      AND entry_index = :entry_index
      AND withdrawn = FALSE
      AND unlock_time <= :now
    RETURNING {_ENTRY_COLUMNS}
""")

_LIST_ENTRIES_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM savings_entries
    WHERE account = :account
    ORDER BY entry_index ASC
""")


def _row_to_entry(row: object) -> SavingsEntry:
    return SavingsEntry(
        account=row.account,  # type: ignore[attr-defined]
        index=row.entry_index,  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        amount=int(row.amount),  # type: ignore[attr-defined]
        unlock_time=row.unlock_time,  # type: ignore[attr-defined]
        goal_name=row.goal_name,  # type: ignore[attr-defined]
        withdrawn=row.withdrawn,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        withdrawn_at=row.withdrawn_at,  # type: ignore[attr-defined]
    )


class SavingsRepository:
    async def append(
        self,
        db: AsyncSession,
        account: str,
        asset: str,
        amount: int,
        unlock_time: datetime,
        goal_name: str,
        created_at: datetime,
    ) -> SavingsEntry:
        index = (await db.execute(_NEXT_INDEX_SQL, {"account": account})).scalar_one()
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "account": account,
                "entry_index": index,
                "asset": asset,
                "amount": amount,
                "unlock_time": unlock_time,
                "goal_name": goal_name,
                "created_at": created_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Savings insert returned no rows: this should never happen")
        return _row_to_entry(row)

    async def get(
        self, db: AsyncSession, account: str, index: int
    ) -> SavingsEntry | None:
        result = await db.execute(
            _GET_ENTRY_SQL, {"account": account, "entry_index": index}
        )
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def mark_withdrawn(
        self, db: AsyncSession, account: str, index: int, now: datetime
    ) -> SavingsEntry | None:
        result = await db.execute(
            _WITHDRAW_ENTRY_SQL,
            {"account": account, "entry_index": index, "now": now},
        )
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def list_by_account(
        self, db: AsyncSession, account: str
    ) -> list[SavingsEntry]:
        result = await db.execute(_LIST_ENTRIES_SQL, {"account": account})
        return [_row_to_entry(row) for row in result.fetchall()]
