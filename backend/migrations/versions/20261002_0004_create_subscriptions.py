from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261002_0004"
down_revision = "20261002_0003"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "subscription_tiers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("creator_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("monthly_price_coins", sa.Integer(), nullable=False),
        sa.Column("yearly_price_coins", sa.Integer(), nullable=True),
        sa.Column("benefits", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("subscriber_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_subscription_tiers_creator_id", "subscription_tiers", ["creator_id"])
    op.create_index("ix_subscription_tiers_is_active", "subscription_tiers", ["is_active"])

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("subscriber_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("creator_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tier_id", sa.Uuid(), sa.ForeignKey("subscription_tiers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        sa.Column("is_yearly", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_period_start", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("current_period_end", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("subscriber_id", "creator_id", name="uq_subscriptions_subscriber_creator"),
        sa.CheckConstraint("status IN ('ACTIVE','CANCELLED','EXPIRED','PAUSED')", name="ck_subscriptions_status"),
    )
    op.create_index("ix_subscriptions_subscriber_id", "subscriptions", ["subscriber_id"])
    op.create_index("ix_subscriptions_creator_id", "subscriptions", ["creator_id"])
    op.create_index("ix_subscriptions_status", "subscriptions", ["status"])

def downgrade() -> None:
    op.drop_index("ix_subscriptions_status", table_name="subscriptions")
    op.drop_index("ix_subscriptions_creator_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_subscriber_id", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("ix_subscription_tiers_is_active", table_name="subscription_tiers")
    op.drop_index("ix_subscription_tiers_creator_id", table_name="subscription_tiers")
    op.drop_table("subscription_tiers")
