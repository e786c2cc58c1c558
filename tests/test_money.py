from decimal import Decimal

import pytest

from bankledger.core.errors import InvalidRequest
from bankledger.core.money import cents_to_dollars, dollars_to_cents, format_dollars, mask_account_number


def test_cents_to_dollars_is_exact():
    assert cents_to_dollars(2500) == Decimal("25.00")
    assert cents_to_dollars(1) == Decimal("0.01")
    assert cents_to_dollars(999_999_999) == Decimal("9999999.99")
    assert cents_to_dollars(-2500) == Decimal("-25.00")


def test_dollars_to_cents_rounds_half_even():
    assert dollars_to_cents("100.00") == 10_000
    assert dollars_to_cents(Decimal("0.105")) == 10
    assert dollars_to_cents(Decimal("0.115")) == 12
    assert dollars_to_cents("19.999") == 2000
    assert dollars_to_cents(7) == 700


def test_float_values_that_do_not_survive_binary_are_still_exact_as_strings():
    # 0.1 + 0.2 style inputs must not drift when passed as text.
    assert dollars_to_cents("0.29") == 29
    assert dollars_to_cents("1.15") == 115


@pytest.mark.parametrize("value", [0.1, True, "abc", "NaN", "Infinity"])
def test_dollars_to_cents_rejects_unsafe_input(value):
    with pytest.raises(InvalidRequest):
        dollars_to_cents(value)


def test_cents_to_dollars_rejects_non_integers():
    with pytest.raises(InvalidRequest):
        cents_to_dollars(1.5)


def test_format_and_mask():
    assert format_dollars(123456) == "1234.56"
    assert format_dollars(5) == "0.05"
    assert mask_account_number("11111111111110001") == "****0001"
    assert mask_account_number(None) is None
