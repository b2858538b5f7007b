"""003: create trades table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trades (
            id                  BIGSERIAL       PRIMARY KEY,
            seller              VARCHAR(64)     NOT NULL,
            buyer               VARCHAR(64)     NOT NULL,
            asset               VARCHAR(64)     NOT NULL,
            amount              NUMERIC(78, 0)  NOT NULL,
            description         VARCHAR(500)    NOT NULL DEFAULT '',
            seller_deposited    BOOLEAN         NOT NULL DEFAULT TRUE,
            buyer_confirmed     BOOLEAN         NOT NULL DEFAULT FALSE,
            completed           BOOLEAN         NOT NULL DEFAULT FALSE,
            cancelled           BOOLEAN         NOT NULL DEFAULT FALSE,
            is_native           BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trades_amount_gt_0        CHECK (amount > 0),
            CONSTRAINT ck_trades_parties_differ     CHECK (buyer <> seller),
            CONSTRAINT ck_trades_single_terminal    CHECK (NOT (completed AND cancelled)),
            CONSTRAINT ck_trades_confirm_completes  CHECK (buyer_confirmed = completed)
        );
    """)
    op.execute("CREATE INDEX idx_trades_seller ON trades (seller, id DESC);")
    op.execute("CREATE INDEX idx_trades_buyer ON trades (buyer, id DESC);")
    op.execute("""
        CREATE INDEX idx_trades_pending_asset
        ON trades (asset)
        WHERE completed = FALSE AND cancelled = FALSE;
    """)
    op.execute("""
        CREATE TRIGGER trg_trades_updated_at
            BEFORE UPDATE ON trades
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE trades IS 'Escrow trades: terminal rows are never modified';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trades CASCADE;")
