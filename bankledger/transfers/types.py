from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TransferRequest:
    """An internal transfer as received, before any account has been looked up."""

    requester_id: int
    source_account_id: int
    destination_account_id: int
    amount_cents: int
    idempotency_key: str | None = None


@dataclass(frozen=True)
class TransferInstruction:
    """A request that passed validation; only ``validate_transfer`` builds these."""

    requester_id: int
    source_account_id: int
    destination_account_id: int
    amount_cents: int
    idempotency_key: str | None = None


@dataclass(frozen=True)
class TransferResult:
    success: bool
    message: str
    transaction_id: int
    amount: int
    transfer_rule_id: int | None = None
    replayed: bool = False
