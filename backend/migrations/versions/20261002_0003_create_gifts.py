from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261002_0003"
down_revision = "20261001_0002"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "gift_types",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon_url", sa.Text(), nullable=False),
        sa.Column("animation_url", sa.Text(), nullable=True),
        sa.Column("coin_cost", sa.Integer(), nullable=False),
        sa.Column("net_worth_value", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("coin_cost > 0", name="ck_gift_types_coin_cost_positive"),
    )
    op.create_index("ix_gift_types_is_active", "gift_types", ["is_active"])
    op.create_index("ix_gift_types_category", "gift_types", ["category"])

    op.create_table(
        "gift_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("sender_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("gift_type_id", sa.Uuid(), sa.ForeignKey("gift_types.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_coins", sa.BigInteger(), nullable=False),
        sa.Column("context_type", sa.String(length=50), nullable=True),
        sa.Column("context_id", sa.String(length=64), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_gift_transactions_sender_id", "gift_transactions", ["sender_id"])
    op.create_index("ix_gift_transactions_recipient_id", "gift_transactions", ["recipient_id"])
    op.create_index("ix_gift_transactions_context", "gift_transactions", ["context_type", "context_id"])

def downgrade() -> None:
    op.drop_index("ix_gift_transactions_context", table_name="gift_transactions")
    op.drop_index("ix_gift_transactions_recipient_id", table_name="gift_transactions")
    op.drop_index("ix_gift_transactions_sender_id", table_name="gift_transactions")
    op.drop_table("gift_transactions")
    op.drop_index("ix_gift_types_category", table_name="gift_types")
    op.drop_index("ix_gift_types_is_active", table_name="gift_types")
    op.drop_table("gift_types")
