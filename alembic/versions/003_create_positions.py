"""003: create positions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         UUID            NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            symbol          VARCHAR(32)     NOT NULL,
            asset_type      VARCHAR(10)     NOT NULL,
            quantity        BIGINT          NOT NULL,
            cost_basis      BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_user_symbol UNIQUE (user_id, symbol, asset_type),
            CONSTRAINT ck_positions_asset_type  CHECK (asset_type IN ('stock', 'option')),
            CONSTRAINT ck_positions_quantity    CHECK (quantity > 0),
            CONSTRAINT ck_positions_cost_basis  CHECK (cost_basis >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE positions IS "
        "'Open long positions; rows are deleted when quantity reaches zero';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
