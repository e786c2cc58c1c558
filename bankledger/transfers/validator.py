"""
Request validation for internal transfers.

Checks run in a fixed order and the first failure wins:

1. amount is a positive integer number of cents within the configured bound;
2. source and destination differ (decided before any lookup);
3. each account exists and belongs to the requester;
4. each account is active;
5. the source balance covers the amount.

Nothing here writes. The balance check is advisory: the executor repeats it
atomically as part of the debit.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from bankledger.core.errors import AccountInactive, InsufficientFunds, InvalidRequest, NotFound
from bankledger.models.base import MAX_INTEGER_ID
from bankledger.models.internal_account import InternalAccount
from bankledger.transfers.types import TransferInstruction, TransferRequest

SOURCE = "source"
DESTINATION = "destination"


def check_amount(amount_cents: int, max_cents: int) -> None:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidRequest("Amount must be a whole number of cents", field="amount")
    if amount_cents <= 0:
        raise InvalidRequest("Amount must be at least $0.01", field="amount")
    if amount_cents > max_cents:
        raise InvalidRequest("Amount exceeds the maximum allowed transfer", field="amount")


def check_distinct(source_account_id: int, destination_account_id: int) -> None:
    if source_account_id == destination_account_id:
        raise InvalidRequest(
            "Source and destination accounts must be different",
            field="destination_account_id",
        )


def load_owned_account(db: Session, account_id: int, requester_id: int, side: str) -> InternalAccount:
    if account_id > MAX_INTEGER_ID:
        raise NotFound(f"{side.capitalize()} account not found or does not belong to user", side=side)
    # populate_existing: never trust a balance cached in the identity map.
    account = db.scalar(
        select(InternalAccount)
        .where(InternalAccount.id == account_id, InternalAccount.user_id == requester_id)
        .execution_options(populate_existing=True)
    )
    if account is None:
        raise NotFound(f"{side.capitalize()} account not found or does not belong to user", side=side)
    return account


def validate_transfer(db: Session, request: TransferRequest, *, max_cents: int) -> TransferInstruction:
    check_amount(request.amount_cents, max_cents)
    check_distinct(request.source_account_id, request.destination_account_id)

    source = load_owned_account(db, request.source_account_id, request.requester_id, SOURCE)
    destination = load_owned_account(db, request.destination_account_id, request.requester_id, DESTINATION)

    if not source.is_active:
        raise AccountInactive("Source account is inactive", side=SOURCE)
    if not destination.is_active:
        raise AccountInactive("Destination account is inactive", side=DESTINATION)

    if source.balance_cents < request.amount_cents:
        raise InsufficientFunds("Insufficient funds")

    return TransferInstruction(
        requester_id=request.requester_id,
        source_account_id=source.id,
        destination_account_id=destination.id,
        amount_cents=request.amount_cents,
        idempotency_key=request.idempotency_key,
    )
