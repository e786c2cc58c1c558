from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bankledger.core.datetime_utils import utcnow_naive
from bankledger.models.base import Base


class Transaction(Base):
    """One leg of money movement against one account. Rows are never updated."""

    __tablename__ = "transactions"

    TYPE_INTERNAL_TRANSFER = "internal_transfer"
    DIRECTION_INBOUND = "inbound"
    DIRECTION_OUTBOUND = "outbound"
    STATUS_APPROVED = "approved"
    STATUS_DENIED = "denied"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=utcnow_naive,
        server_default=func.now(),
        index=True,
    )

    internal_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("internal_accounts.id"), index=True)

    # Signed minor units: negative = debit, positive = credit.
    amount_cents: Mapped[int] = mapped_column(BigInteger)

    # 'internal_transfer' | 'external_transfer' | 'billpay' | 'deposit' | 'withdrawal'
    transaction_type: Mapped[str] = mapped_column(String(20), index=True)

    # 'inbound' | 'outbound'
    direction: Mapped[str] = mapped_column(String(10))

    # 'approved' | 'denied'
    status: Mapped[str] = mapped_column(String(10))

    transfer_rule_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("transfer_rules.id"), nullable=True, index=True
    )

    # Unique in storage; two concurrent identical requests cannot both commit.
    idempotency_key: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
