from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from bankledger.api.deps import get_current_user, get_db
from bankledger.core.money import format_dollars, mask_account_number
from bankledger.models.internal_account import InternalAccount
from bankledger.models.user import User
from bankledger.schemas.account import InternalAccountOut

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=list[InternalAccountOut])
def list_internal_accounts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[InternalAccountOut]:
    rows = db.scalars(
        select(InternalAccount).where(InternalAccount.user_id == current_user.id).order_by(InternalAccount.id)
    ).all()
    return [
        InternalAccountOut(
            id=r.id,
            account_number=mask_account_number(r.account_number),
            routing_number=r.routing_number,
            account_type=r.account_type,
            is_active=r.is_active,
            balance_cents=r.balance_cents,
            balance=format_dollars(r.balance_cents),
        )
        for r in rows
    ]
