import pytest

from bankledger.core.errors import InsufficientFunds, TransferFailed
from bankledger.core.retry import RetryConfig, calculate_delay, retry_transfer


def no_sleep(_):
    pass


def test_retryable_failure_is_retried_until_success():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TransferFailed("conflict", retryable=True)
        return "done"

    assert retry_transfer(flaky, RetryConfig(max_attempts=3), sleep=no_sleep) == "done"
    assert len(attempts) == 3


def test_gives_up_after_max_attempts():
    attempts = []

    def always_conflicts():
        attempts.append(1)
        raise TransferFailed("conflict", retryable=True)

    with pytest.raises(TransferFailed):
        retry_transfer(always_conflicts, RetryConfig(max_attempts=4), sleep=no_sleep)
    assert len(attempts) == 4


@pytest.mark.parametrize(
    "error",
    [TransferFailed("constraint", retryable=False), InsufficientFunds("Insufficient funds")],
)
def test_non_retryable_errors_surface_immediately(error):
    attempts = []

    def fails():
        attempts.append(1)
        raise error

    with pytest.raises(type(error)):
        retry_transfer(fails, RetryConfig(max_attempts=5), sleep=no_sleep)
    assert len(attempts) == 1


def test_delay_grows_and_is_capped():
    config = RetryConfig(base_delay=0.1, max_delay=0.3, jitter=False)
    assert calculate_delay(1, config) == pytest.approx(0.1)
    assert calculate_delay(2, config) == pytest.approx(0.2)
    assert calculate_delay(5, config) == pytest.approx(0.3)


def test_jitter_stays_within_half_to_full_delay():
    config = RetryConfig(base_delay=1.0, max_delay=10.0, jitter=True)
    for _ in range(50):
        assert 0.5 <= calculate_delay(1, config) <= 1.0


def test_single_attempt_reraises_the_original_failure():
    failure = TransferFailed("conflict", retryable=True)
    attempts = []

    def conflicts():
        attempts.append(1)
        raise failure

    with pytest.raises(TransferFailed) as exc:
        retry_transfer(conflicts, RetryConfig(max_attempts=1), sleep=no_sleep)
    assert exc.value is failure
    assert len(attempts) == 1
