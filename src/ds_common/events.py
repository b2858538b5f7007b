"""Append-only audit events for committed engine mutations.

Each mutating operation appends exactly one event inside its own transaction,
so an event exists if and only if the mutation committed. Events are consumed
by the external history/indexing service; the engines never read them back.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_common.enums import Engine, LedgerEventType

logger = logging.getLogger(__name__)

_INSERT_EVENT_SQL = text("""
    INSERT INTO ledger_events (engine, event_type, entity_id, account, payload)
    VALUES (:engine, :event_type, :entity_id, :account, CAST(:payload AS JSONB))
""")


@dataclass
class LedgerEvent:
    engine: Engine
    event_type: LedgerEventType
    entity_id: str          # trade id, "account:index", or "account:asset"
    account: str            # caller that triggered the mutation
    payload: dict[str, Any] = field(default_factory=dict)


class EventLogProtocol(Protocol):
    async def append(self, db: AsyncSession, event: LedgerEvent) -> None: ...


def _jsonable(value: Any) -> Any:
    # Amounts can exceed JSON-safe integer range for JS consumers
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class SqlEventLog:
    """Writes events to ledger_events within the caller's transaction."""

    async def append(self, db: AsyncSession, event: LedgerEvent) -> None:
        payload = {k: _jsonable(v) for k, v in event.payload.items()}
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "engine": event.engine.value,
                "event_type": event.event_type.value,
                "entity_id": event.entity_id,
                "account": event.account,
                "payload": json.dumps(payload),
            },
        )
        logger.info(
            "%s %s entity=%s account=%s %s",
            event.engine.value,
            event.event_type.value,
            event.entity_id,
            event.account,
            payload,
        )
