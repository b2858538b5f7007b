"""002: create simulated token ledger tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE token_balances (
            account     VARCHAR(64)     NOT NULL,
            asset       VARCHAR(64)     NOT NULL,
            amount      NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_token_balances            PRIMARY KEY (account, asset),
            CONSTRAINT ck_token_balances_amount_gte_0 CHECK (amount >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE token_allowances (
            owner       VARCHAR(64)     NOT NULL,
            spender     VARCHAR(64)     NOT NULL,
            asset       VARCHAR(64)     NOT NULL,
            amount      NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_token_allowances              PRIMARY KEY (owner, spender, asset),
            CONSTRAINT ck_token_allowances_amount_gte_0 CHECK (amount >= 0)
        );
    """)
    for table in ("token_balances", "token_allowances"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
        """)
    op.execute(
        "COMMENT ON TABLE token_balances IS "
        "'Simulated transfer primitive: amounts in the asset''s smallest unit';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS token_allowances CASCADE;")
    op.execute("DROP TABLE IF EXISTS token_balances CASCADE;")
