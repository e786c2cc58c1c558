from __future__ import annotations

from pydantic import BaseModel


class InternalAccountOut(BaseModel):
    id: int
    account_number: str | None
    routing_number: str
    account_type: str
    is_active: bool
    balance_cents: int
    # Decimal dollars rendered exactly, e.g. "1234.56".
    balance: str
