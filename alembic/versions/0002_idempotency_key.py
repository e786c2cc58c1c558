"""transactions.idempotency_key

Revision ID: 0002_idempotency_key
Revises: 0001_init
Create Date: 2025-10-13

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002_idempotency_key"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enforced by the database, not by a lookup: concurrent duplicates must fail to commit.
    with op.batch_alter_table("transactions") as batch:
        batch.add_column(sa.Column("idempotency_key", sa.String(length=320), nullable=True))
        batch.create_unique_constraint("uq_transactions_idempotency_key", ["idempotency_key"])


def downgrade() -> None:
    with op.batch_alter_table("transactions") as batch:
        batch.drop_constraint("uq_transactions_idempotency_key", type_="unique")
        batch.drop_column("idempotency_key")
