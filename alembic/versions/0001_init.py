"""init

Revision ID: 0001_init
Revises: 
Create Date: 2025-10-08

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("auth_user_id", sa.String(length=64), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_auth_user_id", "users", ["auth_user_id"], unique=True)

    op.create_table(
        "internal_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("account_number", sa.String(length=17), nullable=False),
        sa.Column("routing_number", sa.String(length=9), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("account_type", sa.String(length=10), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("balance_cents", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_internal_accounts"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_internal_accounts_user_id"),
        sa.UniqueConstraint("account_number", name="uq_internal_accounts_account_number"),
        sa.CheckConstraint("balance_cents >= 0", name="ck_internal_accounts_balance_non_negative"),
    )
    op.create_index("ix_internal_accounts_user_id", "internal_accounts", ["user_id"], unique=False)

    op.create_table(
        "transfer_rules",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("transfer_kind", sa.String(length=10), nullable=False),
        sa.Column("direction", sa.String(length=10), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("frequency", sa.String(length=100), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=False), nullable=True),
        sa.Column("run_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("source_internal_id", sa.Integer(), nullable=False),
        sa.Column("destination_internal_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_transfer_rules"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_transfer_rules_user_id"),
        sa.ForeignKeyConstraint(
            ["source_internal_id"], ["internal_accounts.id"], name="fk_transfer_rules_source_internal_id"
        ),
        sa.ForeignKeyConstraint(
            ["destination_internal_id"], ["internal_accounts.id"], name="fk_transfer_rules_destination_internal_id"
        ),
    )
    op.create_index("ix_transfer_rules_user_id", "transfer_rules", ["user_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        sa.Column("internal_account_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("direction", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("transfer_rule_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.ForeignKeyConstraint(
            ["internal_account_id"], ["internal_accounts.id"], name="fk_transactions_internal_account_id"
        ),
        sa.ForeignKeyConstraint(["transfer_rule_id"], ["transfer_rules.id"], name="fk_transactions_transfer_rule_id"),
    )
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"], unique=False)
    op.create_index("ix_transactions_internal_account_id", "transactions", ["internal_account_id"], unique=False)
    op.create_index("ix_transactions_transaction_type", "transactions", ["transaction_type"], unique=False)
    op.create_index("ix_transactions_transfer_rule_id", "transactions", ["transfer_rule_id"], unique=False)


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("transfer_rules")
    op.drop_table("internal_accounts")
    op.drop_table("users")
