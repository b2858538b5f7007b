"""006: create ledger_events table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_events (
            id          BIGSERIAL       PRIMARY KEY,
            engine      VARCHAR(16)     NOT NULL,
            event_type  VARCHAR(32)     NOT NULL,
            entity_id   VARCHAR(160)    NOT NULL,
            account     VARCHAR(64)     NOT NULL,
            payload     JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_events_engine CHECK (
                engine IN ('ESCROW', 'SAVINGS', 'VAULT', 'TOKEN')
            ),
            CONSTRAINT ck_ledger_events_type CHECK (
                event_type IN (
                    'TRADE_CREATED', 'TRADE_COMPLETED', 'TRADE_CANCELLED',
                    'SAVING_CREATED', 'SAVING_WITHDRAWN',
                    'VAULT_DEPOSITED', 'VAULT_WITHDRAWN',
                    'ALLOWANCE_SET', 'FAUCET_MINT'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_ledger_events_entity ON ledger_events (engine, entity_id, id);")
    op.execute("CREATE INDEX idx_ledger_events_account ON ledger_events (account, created_at DESC);")
    op.execute("COMMENT ON TABLE ledger_events IS 'Audit trail: one row per committed mutation, Append-Only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_events CASCADE;")
