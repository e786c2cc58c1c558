import threading

from bankledger.core.errors import InsufficientFunds, TransferFailed
from conftest import balance_of, ledger_rows


def test_two_transfers_cannot_both_spend_the_same_balance(session_factory, ledger, transfer_engine):
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def worker():
        with session_factory() as session:
            barrier.wait()
            try:
                result = transfer_engine.transfer(
                    session,
                    requester_id=ledger.alice_id,
                    source_account_id=ledger.checking_id,
                    destination_account_id=ledger.savings_id,
                    amount_cents=10_000,
                )
                outcome = ("ok", result.transaction_id)
            except (InsufficientFunds, TransferFailed) as exc:
                outcome = ("failed", exc.code)
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert len(outcomes) == 2
    assert sorted(kind for kind, _ in outcomes) == ["failed", "ok"]
    assert balance_of(session_factory, ledger.checking_id) == 0
    assert balance_of(session_factory, ledger.savings_id) == 10_000
    assert [r.amount_cents for r in ledger_rows(session_factory)] == [-10_000, 10_000]


def test_parallel_small_transfers_conserve_money(session_factory, ledger, transfer_engine):
    barrier = threading.Barrier(4)
    errors = []

    def worker():
        with session_factory() as session:
            barrier.wait()
            for _ in range(5):
                try:
                    transfer_engine.transfer(
                        session,
                        requester_id=ledger.alice_id,
                        source_account_id=ledger.checking_id,
                        destination_account_id=ledger.savings_id,
                        amount_cents=600,
                    )
                except (InsufficientFunds, TransferFailed) as exc:
                    errors.append(exc.code)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=120)

    checking = balance_of(session_factory, ledger.checking_id)
    savings = balance_of(session_factory, ledger.savings_id)
    rows = ledger_rows(session_factory)

    assert checking >= 0
    assert checking + savings == 10_000
    assert savings == 600 * (len(rows) // 2)
    assert sum(r.amount_cents for r in rows) == 0
