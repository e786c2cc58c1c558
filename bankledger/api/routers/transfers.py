from __future__ import annotations

import math
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from bankledger.api.deps import get_current_user, get_db, get_settings, get_transfer_engine
from bankledger.core.config import Settings
from bankledger.core.datetime_utils import as_utc, to_utc_naive
from bankledger.core.money import mask_account_number
from bankledger.core.retry import RetryConfig, retry_transfer
from bankledger.models.internal_account import InternalAccount
from bankledger.models.transaction import Transaction
from bankledger.models.transfer_rule import TransferRule
from bankledger.models.user import User
from bankledger.schemas.transfer import (
    InternalTransferCreate,
    InternalTransferOut,
    Pagination,
    TransferHistoryItem,
    TransferHistoryOut,
)
from bankledger.transfers.engine import TransferEngine

router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.post("/internal", response_model=InternalTransferOut)
def create_internal_transfer(
    payload: InternalTransferCreate,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    engine: TransferEngine = Depends(get_transfer_engine),
    settings: Settings = Depends(get_settings),
) -> InternalTransferOut:
    requester_id = current_user.id

    result = retry_transfer(
        lambda: engine.transfer(
            db,
            requester_id=requester_id,
            source_account_id=payload.source_account_id,
            destination_account_id=payload.destination_account_id,
            amount_cents=payload.amount,
            idempotency_key=idempotency_key,
        ),
        RetryConfig.from_settings(settings),
    )

    return InternalTransferOut(
        success=result.success,
        message=result.message,
        transaction_id=result.transaction_id,
        amount=result.amount,
        replayed=result.replayed,
    )


@router.get("/history", response_model=TransferHistoryOut)
def transfer_history(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> TransferHistoryOut:
    if limit is None:
        limit = settings.history_default_limit
    if limit > settings.history_max_limit:
        raise HTTPException(status_code=422, detail=f"limit must be at most {settings.history_max_limit}")
    if start_date and end_date and to_utc_naive(start_date) > to_utc_naive(end_date):
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")

    conditions = [
        InternalAccount.user_id == current_user.id,
        Transaction.transaction_type == Transaction.TYPE_INTERNAL_TRANSFER,
    ]
    if start_date:
        conditions.append(Transaction.created_at >= to_utc_naive(start_date))
    if end_date:
        conditions.append(Transaction.created_at <= to_utc_naive(end_date))

    total = db.scalar(
        select(func.count(Transaction.id))
        .join(InternalAccount, InternalAccount.id == Transaction.internal_account_id)
        .where(*conditions)
    ) or 0

    source = aliased(InternalAccount)
    destination = aliased(InternalAccount)
    rows = db.execute(
        select(Transaction, source.account_number, destination.account_number)
        .join(InternalAccount, InternalAccount.id == Transaction.internal_account_id)
        .outerjoin(TransferRule, TransferRule.id == Transaction.transfer_rule_id)
        .outerjoin(source, source.id == TransferRule.source_internal_id)
        .outerjoin(destination, destination.id == TransferRule.destination_internal_id)
        .where(*conditions)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    transfers = [
        TransferHistoryItem(
            id=tx.id,
            created_at=as_utc(tx.created_at),
            amount=tx.amount_cents,
            status=tx.status,
            transaction_type=tx.transaction_type,
            direction=tx.direction,
            source_account_number=mask_account_number(source_number),
            destination_account_number=mask_account_number(destination_number),
        )
        for tx, source_number, destination_number in rows
    ]

    return TransferHistoryOut(
        transfers=transfers,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )
