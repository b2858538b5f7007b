"""Custody reconciliation: what each engine holds vs. what it owes.

For every asset, the token balance of an engine's custody account must equal
the sum of the obligations that engine has recorded:

  escrow   custody == SUM(amount) of pending trades
  savings  custody == SUM(amount) of entries not yet withdrawn
  vault    custody == SUM(amount) of vault balances

and every vault (account, asset) balance must equal its journal.
"""

import logging

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings

logger = logging.getLogger(__name__)

_CUSTODY_BALANCES_SQL = text("""
    SELECT asset, amount AS total
    FROM token_balances
    WHERE account = :account
""")

_PENDING_TRADES_SQL = text("""
    SELECT asset, COALESCE(SUM(amount), 0) AS total
    FROM trades
    WHERE completed = FALSE AND cancelled = FALSE
    GROUP BY asset
""")

_OPEN_SAVINGS_SQL = text("""
    SELECT asset, COALESCE(SUM(amount), 0) AS total
    FROM savings_entries
    WHERE withdrawn = FALSE
    GROUP BY asset
""")

_VAULT_TOTALS_SQL = text("""
    SELECT asset, COALESCE(SUM(amount), 0) AS total
    FROM vault_balances
    GROUP BY asset
""")

_VAULT_JOURNAL_DRIFT_SQL = text("""
    SELECT b.account, b.asset, b.amount AS balance,
           COALESCE(SUM(CASE WHEN m.movement_type = 'DEPOSIT'
                             THEN m.amount ELSE -m.amount END), 0) AS journal
    FROM vault_balances b
    LEFT JOIN vault_movements m
           ON m.account = b.account AND m.asset = b.asset
    GROUP BY b.account, b.asset, b.amount
    HAVING b.amount <> COALESCE(SUM(CASE WHEN m.movement_type = 'DEPOSIT'
                                         THEN m.amount ELSE -m.amount END), 0)
""")


async def _totals_by_asset(
    db: AsyncSession, sql: TextClause, params: dict[str, str] | None = None
) -> dict[str, int]:
    rows = (await db.execute(sql, params or {})).fetchall()
    return {row.asset: int(row.total) for row in rows}


def _compare(engine: str, custody: dict[str, int], owed: dict[str, int]) -> list[str]:
    violations: list[str] = []
    for asset in sorted(set(custody) | set(owed)):
        held = custody.get(asset, 0)
        expected = owed.get(asset, 0)
        if held != expected:
            msg = (
                f"{engine} custody mismatch for {asset}: "
                f"custody={held} != recorded={expected}"
            )
            violations.append(msg)
            logger.error(msg)
    return violations


async def verify_custody_invariants(db: AsyncSession) -> list[str]:
    """Returns violation strings; empty when every engine reconciles."""
    violations: list[str] = []
    checks = (
        ("escrow", settings.ESCROW_CUSTODY_ACCOUNT, _PENDING_TRADES_SQL),
        ("savings", settings.SAVINGS_CUSTODY_ACCOUNT, _OPEN_SAVINGS_SQL),
        ("vault", settings.VAULT_CUSTODY_ACCOUNT, _VAULT_TOTALS_SQL),
    )
    for engine, custody_account, owed_sql in checks:
        custody = await _totals_by_asset(
            db, _CUSTODY_BALANCES_SQL, {"account": custody_account}
        )
        owed = await _totals_by_asset(db, owed_sql)
        violations.extend(_compare(engine, custody, owed))

    for row in (await db.execute(_VAULT_JOURNAL_DRIFT_SQL)).fetchall():
        msg = (
            f"vault journal mismatch for {row.account}/{row.asset}: "
            f"balance={int(row.balance)} != journal={int(row.journal)}"
        )
        violations.append(msg)
        logger.error(msg)
    return violations
