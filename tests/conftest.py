from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from bankledger.core.config import Settings
from bankledger.core.security import create_access_token
from bankledger.db.session import build_engine, build_session_factory
from bankledger.main import create_app
from bankledger.models import Base, InternalAccount, Transaction, TransferRule, User
from bankledger.transfers.engine import TransferEngine

ALICE_AUTH_ID = "auth-alice"
BOB_AUTH_ID = "auth-bob"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'ledger.db'}",
        auto_create_schema=True,
        jwt_secret="test-secret",
        transfer_retry_attempts=3,
        transfer_retry_base_delay_seconds=0,
        transfer_retry_max_delay_seconds=0,
        history_default_limit=20,
        history_max_limit=50,
        log_level="DEBUG",
    )


@pytest.fixture
def db_engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger(session_factory):
    """Alice: checking $100.00, savings $0, closed account $50.00. Bob: checking $50.00."""
    with session_factory() as s:
        alice = User(auth_user_id=ALICE_AUTH_ID, username="alice")
        bob = User(auth_user_id=BOB_AUTH_ID, username="bob")
        s.add_all([alice, bob])
        s.flush()

        checking = InternalAccount(
            account_number="11111111111110001", user_id=alice.id, account_type="checking", balance_cents=10_000
        )
        savings = InternalAccount(
            account_number="11111111111110002", user_id=alice.id, account_type="savings", balance_cents=0
        )
        closed = InternalAccount(
            account_number="11111111111110003",
            user_id=alice.id,
            account_type="savings",
            balance_cents=5_000,
            is_active=False,
        )
        bob_checking = InternalAccount(
            account_number="22222222222220001", user_id=bob.id, account_type="checking", balance_cents=5_000
        )
        s.add_all([checking, savings, closed, bob_checking])
        s.commit()

        return SimpleNamespace(
            alice_id=alice.id,
            bob_id=bob.id,
            checking_id=checking.id,
            savings_id=savings.id,
            closed_id=closed.id,
            bob_checking_id=bob_checking.id,
        )


@pytest.fixture
def transfer_engine(settings):
    return TransferEngine(settings)


@pytest.fixture
def client(settings, ledger):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice_headers(settings):
    return {"Authorization": f"Bearer {create_access_token(ALICE_AUTH_ID, settings)}"}


def balance_of(session_factory, account_id: int) -> int:
    with session_factory() as s:
        return s.scalar(select(InternalAccount.balance_cents).where(InternalAccount.id == account_id))


def ledger_rows(session_factory) -> list[Transaction]:
    with session_factory() as s:
        rows = s.scalars(select(Transaction).order_by(Transaction.id)).all()
        s.expunge_all()
        return list(rows)


def rule_count(session_factory) -> int:
    with session_factory() as s:
        return s.scalar(select(func.count(TransferRule.id)))
