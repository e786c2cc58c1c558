import pytest

from bankledger.core.errors import IdempotencyKeyReused, InvalidRequest
from bankledger.models.internal_account import InternalAccount
from bankledger.transfers.idempotency import base_key, leg_keys, normalize_caller_key
from conftest import balance_of, ledger_rows, rule_count


def transfer(engine, db, ledger, amount=2_500, key="retry-1", requester=None, source=None, destination=None):
    return engine.transfer(
        db,
        requester_id=requester or ledger.alice_id,
        source_account_id=source or ledger.checking_id,
        destination_account_id=destination or ledger.savings_id,
        amount_cents=amount,
        idempotency_key=key,
    )


def test_leg_keys_distinguish_directions():
    outbound, inbound = leg_keys(base_key(7, "abc"))
    assert outbound == "user-7:abc:outbound"
    assert inbound == "user-7:abc:inbound"
    assert leg_keys(base_key(7, None, 42)) == ("internal-transfer-42:outbound", "internal-transfer-42:inbound")


@pytest.mark.parametrize("key", ["", "   ", "x" * 256, "bad\nkey"])
def test_malformed_caller_keys_rejected(key):
    with pytest.raises(InvalidRequest):
        normalize_caller_key(key)


def test_replay_returns_first_result_without_posting(transfer_engine, db, ledger, session_factory):
    first = transfer(transfer_engine, db, ledger)
    second = transfer(transfer_engine, db, ledger)

    assert second.transaction_id == first.transaction_id
    assert second.amount == first.amount == 2_500
    assert second.success is True
    assert second.replayed is True
    assert len(ledger_rows(session_factory)) == 2
    assert rule_count(session_factory) == 1
    assert balance_of(session_factory, ledger.checking_id) == 7_500
    assert balance_of(session_factory, ledger.savings_id) == 2_500


def test_replay_succeeds_even_after_balance_is_spent(transfer_engine, db, ledger, session_factory):
    first = transfer(transfer_engine, db, ledger, amount=10_000)
    replay = transfer(transfer_engine, db, ledger, amount=10_000)

    assert replay.transaction_id == first.transaction_id
    assert balance_of(session_factory, ledger.checking_id) == 0


def test_caller_key_is_stored_on_both_legs(transfer_engine, db, ledger, session_factory):
    transfer(transfer_engine, db, ledger, key="order-77")

    keys = [r.idempotency_key for r in ledger_rows(session_factory)]
    assert keys == [f"user-{ledger.alice_id}:order-77:outbound", f"user-{ledger.alice_id}:order-77:inbound"]


def test_key_reused_for_different_amount(transfer_engine, db, ledger, session_factory):
    transfer(transfer_engine, db, ledger, amount=2_500)

    with pytest.raises(IdempotencyKeyReused):
        transfer(transfer_engine, db, ledger, amount=3_000)
    assert len(ledger_rows(session_factory)) == 2


def test_key_reused_for_different_destination(transfer_engine, db, ledger):
    transfer(transfer_engine, db, ledger)

    with pytest.raises(IdempotencyKeyReused):
        transfer(transfer_engine, db, ledger, source=ledger.savings_id, destination=ledger.checking_id)


def test_keys_are_scoped_per_requester(transfer_engine, db, ledger, session_factory):
    transfer(transfer_engine, db, ledger, key="shared")

    # Bob only has one account, so give him a second one to transfer into.
    with session_factory() as s:
        extra = InternalAccount(
            account_number="22222222222220002", user_id=ledger.bob_id, account_type="savings", balance_cents=0
        )
        s.add(extra)
        s.commit()
        extra_id = extra.id

    result = transfer(
        transfer_engine,
        db,
        ledger,
        amount=1_000,
        key="shared",
        requester=ledger.bob_id,
        source=ledger.bob_checking_id,
        destination=extra_id,
    )
    assert result.replayed is False
    assert balance_of(session_factory, ledger.bob_checking_id) == 4_000


def test_concurrent_duplicate_resolves_through_unique_constraint(
    transfer_engine, db, ledger, session_factory, monkeypatch
):
    first = transfer(transfer_engine, db, ledger)

    # Simulate the second request having checked for the key before the first committed.
    real_find_previous = transfer_engine.guard.find_previous
    calls = []

    def stale_find_previous(session, request):
        calls.append(request)
        if len(calls) == 1:
            return None
        return real_find_previous(session, request)

    monkeypatch.setattr(transfer_engine.guard, "find_previous", stale_find_previous)

    second = transfer(transfer_engine, db, ledger)

    assert len(calls) == 2
    assert second.transaction_id == first.transaction_id
    assert second.replayed is True
    assert len(ledger_rows(session_factory)) == 2
    assert rule_count(session_factory) == 1
    assert balance_of(session_factory, ledger.checking_id) == 7_500
