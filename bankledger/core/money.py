"""
Exact conversions between minor units (integer cents) and decimal dollars.

Balances and ledger amounts are stored and computed as integer cents, and the
transfer API takes cents. Dollars only appear in responses. ``dollars_to_cents``
is the helper for callers holding dollar amounts. Every conversion goes through
``Decimal``, never ``float``.
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from bankledger.core.errors import InvalidRequest

CENTS_PER_DOLLAR = 100
_CENT = Decimal("0.01")


def cents_to_dollars(cents: int) -> Decimal:
    """Return ``cents`` as a two-decimal ``Decimal``; exact for every integer."""
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise InvalidRequest("Amount in cents must be an integer")
    return (Decimal(cents) / CENTS_PER_DOLLAR).quantize(_CENT)


def dollars_to_cents(value: Decimal | str | int) -> int:
    """Convert a dollar amount to cents, rounding half-even to the nearest cent.

    ``float`` is refused: by the time a value is a float it may already have
    lost the cent the caller meant.
    """
    if isinstance(value, (float, bool)):
        raise InvalidRequest("Dollar amounts must be given as Decimal, str or int")
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidRequest("Invalid dollar amount") from None
    if not dec.is_finite():
        raise InvalidRequest("Invalid dollar amount")
    return int((dec * CENTS_PER_DOLLAR).quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def format_dollars(cents: int) -> str:
    return f"{cents_to_dollars(cents):.2f}"


def mask_account_number(number: str | None) -> str | None:
    # Requesters only ever see the last four digits.
    if not number:
        return None
    return "****" + number[-4:]
