"""005: create vault tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE vault_balances (
            account     VARCHAR(64)     NOT NULL,
            asset       VARCHAR(64)     NOT NULL,
            amount      NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_vault_balances                PRIMARY KEY (account, asset),
            CONSTRAINT ck_vault_balances_amount_gte_0   CHECK (amount >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_vault_balances_updated_at
            BEFORE UPDATE ON vault_balances
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE vault_movements (
            id              BIGSERIAL       PRIMARY KEY,
            account         VARCHAR(64)     NOT NULL,
            asset           VARCHAR(64)     NOT NULL,
            movement_type   VARCHAR(16)     NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL,
            balance_after   NUMERIC(78, 0)  NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_vault_movements_type          CHECK (movement_type IN ('DEPOSIT', 'WITHDRAW')),
            CONSTRAINT ck_vault_movements_amount_gt_0   CHECK (amount > 0),
            CONSTRAINT ck_vault_movements_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_vault_movements_pair ON vault_movements (account, asset, id);")
    op.execute("COMMENT ON TABLE vault_movements IS 'Vault journal: Append-Only, never updated or deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS vault_movements CASCADE;")
    op.execute("DROP TABLE IF EXISTS vault_balances CASCADE;")
