"""002: create balances table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE balances (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id             UUID            NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            starting_balance    BIGINT          NOT NULL,
            available_balance   BIGINT          NOT NULL,
            unrealized_pnl      BIGINT          NOT NULL DEFAULT 0,
            balance             BIGINT          GENERATED ALWAYS AS
                                                (available_balance + unrealized_pnl) STORED,
            total_pnl           BIGINT          NOT NULL DEFAULT 0,
            daily_pnl           BIGINT          NOT NULL DEFAULT 0,
            weekly_pnl          BIGINT          NOT NULL DEFAULT 0,
            monthly_pnl         BIGINT          NOT NULL DEFAULT 0,
            pnl_updated_at      TIMESTAMPTZ,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_balances_user_id      UNIQUE (user_id),
            CONSTRAINT ck_balances_available    CHECK (available_balance >= 0),
            CONSTRAINT ck_balances_starting     CHECK (starting_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_balances_updated_at
            BEFORE UPDATE ON balances
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE balances IS "
        "'Paper account projection; all amounts in cents, available_balance is cash';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS balances CASCADE;")
