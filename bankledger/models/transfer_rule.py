from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bankledger.models.base import Base


class TransferRule(Base):
    """The instruction behind a transfer; its id correlates the two ledger legs."""

    __tablename__ = "transfer_rules"

    KIND_ONE_OFF = "one_off"
    KIND_RECURRING = "recurring"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    # 'one_off' | 'recurring'
    transfer_kind: Mapped[str] = mapped_column(String(10), default=KIND_ONE_OFF)

    # 'inbound' | 'outbound'
    direction: Mapped[str] = mapped_column(String(10))

    amount_cents: Mapped[int] = mapped_column(BigInteger)

    # Recurring rules only (cron-like expression); not executed by this service.
    frequency: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False))
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    source_internal_id: Mapped[int] = mapped_column(Integer, ForeignKey("internal_accounts.id"))
    destination_internal_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("internal_accounts.id"), nullable=True
    )
