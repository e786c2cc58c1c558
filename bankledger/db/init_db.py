from __future__ import annotations

import logging

from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from bankledger.core.config import Settings
from bankledger.models import Base, InternalAccount, User

logger = logging.getLogger(__name__)

LEDGER_TABLES = ("users", "internal_accounts", "transfer_rules", "transactions")

DEMO_AUTH_USER_ID = "00000000-0000-0000-0000-000000000001"


def ensure_schema(engine: Engine, settings: Settings) -> None:
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
        return

    # Fail fast if database schema is behind code.
    inspector = inspect(engine)
    missing = [t for t in LEDGER_TABLES if not inspector.has_table(t)]
    if missing:
        raise RuntimeError(
            f"Database schema is missing tables {', '.join(missing)}. "
            "Run: alembic upgrade head"
        )
    cols = {c.get("name") for c in inspector.get_columns("transactions")}
    if "idempotency_key" not in cols:
        raise RuntimeError(
            "Database schema is outdated (missing column transactions.idempotency_key). "
            "Run: alembic upgrade head"
        )


def ensure_seed_data(db: Session) -> None:
    """Create a demo customer with a funded checking and an empty savings account."""
    user = db.scalar(select(User).where(User.auth_user_id == DEMO_AUTH_USER_ID))
    if user:
        return

    user = User(auth_user_id=DEMO_AUTH_USER_ID, username="demo", role=User.ROLE_CUSTOMER)
    db.add(user)
    db.flush()
    db.add_all(
        [
            InternalAccount(
                account_number="10000000000000001",
                user_id=user.id,
                account_type="checking",
                balance_cents=100_000,
            ),
            InternalAccount(
                account_number="10000000000000002",
                user_id=user.id,
                account_type="savings",
                balance_cents=0,
            ),
        ]
    )
    db.commit()
    logger.info(f"Seeded demo user {user.id} with two internal accounts")
