from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bankledger.core.datetime_utils import utcnow_naive
from bankledger.models.base import Base


class User(Base):
    __tablename__ = "users"

    ROLE_CUSTOMER = "customer"
    ROLE_BANK_MANAGER = "bank_manager"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Subject of the auth provider's tokens.
    auth_user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True)

    # 'customer' | 'bank_manager'
    role: Mapped[str] = mapped_column(String(20), default=ROLE_CUSTOMER)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=utcnow_naive,
        server_default=func.now(),
    )
