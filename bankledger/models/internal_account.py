from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bankledger.core.datetime_utils import utcnow_naive
from bankledger.models.base import Base

DEFAULT_ROUTING_NUMBER = "724722907"


class InternalAccount(Base):
    __tablename__ = "internal_accounts"
    __table_args__ = (CheckConstraint("balance_cents >= 0", name="balance_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_number: Mapped[str] = mapped_column(String(17), unique=True)
    routing_number: Mapped[str] = mapped_column(String(9), default=DEFAULT_ROUTING_NUMBER)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    # 'checking' | 'savings'
    account_type: Mapped[str] = mapped_column(String(10))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Minor units. Only the transfer executor changes this column, and only
    # through conditional UPDATE statements.
    balance_cents: Mapped[int] = mapped_column(BigInteger, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=utcnow_naive,
        server_default=func.now(),
    )
