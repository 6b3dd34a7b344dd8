from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261001_0002"
down_revision = "20261001_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "wallets",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("coin_balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("lifetime_earned", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("lifetime_spent", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("is_frozen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_wallets_user_id", "wallets", ["user_id"], unique=True)

    op.create_table(
        "coin_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("wallet_id", sa.Uuid(), sa.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("reference_type", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "type IN ('PURCHASE','GIFT_SENT','GIFT_RECEIVED','REFUND','ADMIN_CREDIT','ADMIN_DEBIT','SUBSCRIPTION_PAYMENT')",
            name="ck_coin_transactions_type",
        ),
    )
    op.create_index("ix_coin_transactions_wallet_id", "coin_transactions", ["wallet_id"])
    op.create_index("ix_coin_transactions_created_at", "coin_transactions", ["created_at"])
    op.create_index("ix_coin_transactions_reference_id", "coin_transactions", ["reference_id"])
    # One stripe payment credits at most once
    op.create_index(
        "uq_coin_transactions_stripe_ref", "coin_transactions", ["reference_id"],
        unique=True, postgresql_where=sa.text("reference_type = 'stripe'"),
    )

def downgrade() -> None:
    op.drop_index("uq_coin_transactions_stripe_ref", table_name="coin_transactions")
    op.drop_index("ix_coin_transactions_reference_id", table_name="coin_transactions")
    op.drop_index("ix_coin_transactions_created_at", table_name="coin_transactions")
    op.drop_index("ix_coin_transactions_wallet_id", table_name="coin_transactions")
    op.drop_table("coin_transactions")
    op.drop_index("ix_wallets_user_id", table_name="wallets")
    op.drop_table("wallets")
