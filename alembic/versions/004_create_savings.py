"""004: create savings tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE savings_counters (
            account     VARCHAR(64)     PRIMARY KEY,
            next_index  BIGINT          NOT NULL,
            CONSTRAINT ck_savings_counters_next_gt_0 CHECK (next_index > 0)
        );
    """)
    op.execute("""
        CREATE TABLE savings_entries (
            account         VARCHAR(64)     NOT NULL,
            entry_index     BIGINT          NOT NULL,
            asset           VARCHAR(64)     NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL,
            unlock_time     TIMESTAMPTZ     NOT NULL,
            goal_name       VARCHAR(100)    NOT NULL DEFAULT '',
            withdrawn       BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            withdrawn_at    TIMESTAMPTZ,
            CONSTRAINT pk_savings_entries               PRIMARY KEY (account, entry_index),
            CONSTRAINT ck_savings_entries_amount_gt_0   CHECK (amount > 0),
            CONSTRAINT ck_savings_entries_index_gte_0   CHECK (entry_index >= 0),
            CONSTRAINT ck_savings_entries_unlock_after  CHECK (unlock_time > created_at),
            CONSTRAINT ck_savings_entries_withdrawn_at  CHECK (withdrawn = (withdrawn_at IS NOT NULL))
        );
    """)
    op.execute("""
        CREATE INDEX idx_savings_open_asset
        ON savings_entries (asset)
        WHERE withdrawn = FALSE;
    """)
    op.execute("COMMENT ON TABLE savings_entries IS 'Time-locked holds: append-only per account, withdrawn is one-way';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS savings_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS savings_counters CASCADE;")
