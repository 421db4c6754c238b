"""004: create orders table

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  UUID            PRIMARY KEY,
            user_id             UUID            NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            symbol              VARCHAR(32)     NOT NULL,
            asset_type          VARCHAR(10)     NOT NULL,
            side                VARCHAR(4)      NOT NULL,
            order_type          VARCHAR(10)     NOT NULL,
            quantity            BIGINT          NOT NULL,
            price               BIGINT          NOT NULL,
            filled_quantity     BIGINT          NOT NULL DEFAULT 0,
            filled_price        BIGINT,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            realized_pnl        BIGINT,
            filled_at           TIMESTAMPTZ,
            cancelled_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_asset_type CHECK (asset_type IN ('stock', 'option')),
            CONSTRAINT ck_orders_side       CHECK (side IN ('buy', 'sell')),
            CONSTRAINT ck_orders_type       CHECK (order_type = 'market'),
            CONSTRAINT ck_orders_status     CHECK (status IN ('pending', 'filled', 'cancelled')),
            CONSTRAINT ck_orders_quantity   CHECK (quantity > 0),
            CONSTRAINT ck_orders_price      CHECK (price > 0),
            CONSTRAINT ck_orders_filled_qty CHECK (filled_quantity >= 0 AND filled_quantity <= quantity),
            CONSTRAINT ck_orders_filled     CHECK (
                status <> 'filled' OR (filled_price > 0 AND filled_at IS NOT NULL)
            ),
            CONSTRAINT ck_orders_realized   CHECK (side = 'sell' OR realized_pnl IS NULL)
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_created ON orders (user_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_orders_user_filled
        ON orders (user_id, filled_at)
        WHERE status = 'filled';
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Market orders; filled orders are the trade log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
