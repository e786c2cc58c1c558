"""
Idempotency keys for ledger legs.

Each posted leg carries ``<base>:outbound`` or ``<base>:inbound``. The base is
the caller's ``Idempotency-Key`` scoped to the requester, or, when the caller
sent none, the id of the transfer rule created for the instruction. The
unique index on ``transactions.idempotency_key`` is what actually stops a
double post; the lookup below only lets a retry get the earlier answer back.
"""
from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from bankledger.core.errors import DuplicateIdempotencyKey, IdempotencyKeyReused, InvalidRequest
from bankledger.models.transaction import Transaction
from bankledger.models.transfer_rule import TransferRule
from bankledger.transfers.types import TransferRequest, TransferResult

logger = logging.getLogger(__name__)

OUTBOUND_SUFFIX = ":outbound"
INBOUND_SUFFIX = ":inbound"
MAX_CALLER_KEY_LENGTH = 255

COMPLETED_MESSAGE = "Internal transfer completed successfully"


def normalize_caller_key(key: str | None) -> str | None:
    if key is None:
        return None
    key = key.strip()
    if not key or len(key) > MAX_CALLER_KEY_LENGTH or not key.isprintable():
        raise InvalidRequest(
            f"Idempotency-Key must be 1-{MAX_CALLER_KEY_LENGTH} printable characters",
            field="Idempotency-Key",
        )
    return key


def base_key(requester_id: int, caller_key: str | None, transfer_rule_id: int | None = None) -> str:
    if caller_key is not None:
        return f"user-{requester_id}:{caller_key}"
    if transfer_rule_id is None:
        raise ValueError("transfer_rule_id is required when no caller key is given")
    return f"internal-transfer-{transfer_rule_id}"


def leg_keys(base: str) -> tuple[str, str]:
    return base + OUTBOUND_SUFFIX, base + INBOUND_SUFFIX


class IdempotencyGuard:
    def find_previous(self, db: Session, request: TransferRequest) -> TransferResult | None:
        """Return the result already recorded under the request's key, if any."""
        if request.idempotency_key is None:
            return None

        outbound_key, _ = leg_keys(base_key(request.requester_id, request.idempotency_key))
        leg = db.scalar(
            select(Transaction)
            .where(Transaction.idempotency_key == outbound_key)
            .execution_options(populate_existing=True)
        )
        if leg is None:
            return None

        rule = db.get(TransferRule, leg.transfer_rule_id) if leg.transfer_rule_id is not None else None
        if (
            leg.internal_account_id != request.source_account_id
            or -leg.amount_cents != request.amount_cents
            or rule is None
            or rule.destination_internal_id != request.destination_account_id
        ):
            raise IdempotencyKeyReused("Idempotency-Key was already used for a different transfer")

        return TransferResult(
            success=True,
            message=COMPLETED_MESSAGE,
            transaction_id=leg.id,
            amount=-leg.amount_cents,
            transfer_rule_id=leg.transfer_rule_id,
            replayed=True,
        )

    def run(
        self,
        db: Session,
        request: TransferRequest,
        execute: Callable[[], TransferResult],
    ) -> TransferResult:
        previous = self.find_previous(db, request)
        if previous is not None:
            logger.info(f"Replaying transfer for idempotency key, outbound_tx={previous.transaction_id}")
            return previous

        try:
            return execute()
        except DuplicateIdempotencyKey:
            # Lost the race to an identical request; hand back the winner's result.
            previous = self.find_previous(db, request)
            if previous is None:
                raise
            logger.info(f"Concurrent duplicate resolved to outbound_tx={previous.transaction_id}")
            return previous
