from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from bankledger.models.base import MAX_INTEGER_ID


class InternalTransferCreate(BaseModel):
    source_account_id: int = Field(gt=0, le=MAX_INTEGER_ID)
    destination_account_id: int = Field(gt=0, le=MAX_INTEGER_ID)
    # Minor units (cents); the upper bound is the configured max_transfer_cents.
    amount: int = Field(ge=1, strict=True)


class InternalTransferOut(BaseModel):
    success: bool
    message: str
    transaction_id: int
    amount: int
    replayed: bool = False


class TransferHistoryItem(BaseModel):
    id: int
    created_at: datetime
    # Signed cents: negative for the outbound leg.
    amount: int
    status: str
    transaction_type: str
    direction: str
    source_account_number: str | None = None
    destination_account_number: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TransferHistoryOut(BaseModel):
    transfers: list[TransferHistoryItem]
    pagination: Pagination
