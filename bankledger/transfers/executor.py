"""
Atomic posting of a validated internal transfer.

One unit of work on the caller's session creates the transfer rule, both
ledger legs and both balance changes, then commits. Any failure rolls the
whole unit back, so either all of it is visible afterwards or none of it is.

The debit is a conditional UPDATE (``balance_cents >= amount`` in the WHERE
clause) and its affected-row count is checked. Two transfers racing for the
same funds therefore cannot both succeed, whatever they saw during
validation. Both account rows are locked in id order before anything is
written.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from bankledger.core.datetime_utils import utcnow_naive
from bankledger.core.errors import (
    AccountInactive,
    DuplicateIdempotencyKey,
    InsufficientFunds,
    LedgerError,
    NotFound,
    TransferFailed,
)
from bankledger.models.internal_account import InternalAccount
from bankledger.models.transaction import Transaction
from bankledger.models.transfer_rule import TransferRule
from bankledger.transfers import idempotency
from bankledger.transfers.idempotency import COMPLETED_MESSAGE
from bankledger.transfers.types import TransferInstruction, TransferResult
from bankledger.transfers.validator import DESTINATION, SOURCE

logger = logging.getLogger(__name__)


class TransferExecutor:
    def execute(self, db: Session, instruction: TransferInstruction) -> TransferResult:
        try:
            rule_id, outbound_id = self._post(db, instruction)
            db.commit()
        except LedgerError:
            db.rollback()
            raise
        except IntegrityError as exc:
            db.rollback()
            if "idempotency_key" in str(exc.orig):
                raise DuplicateIdempotencyKey() from exc
            logger.error("Ledger constraint violated while posting transfer", exc_info=True)
            raise TransferFailed("Failed to process internal transfer") from exc
        except OperationalError as exc:
            # Lock timeouts, serialization failures, dropped connections.
            db.rollback()
            logger.warning(f"Store unavailable while posting transfer: {exc.orig!r}")
            raise TransferFailed("Ledger is busy, transfer was not applied", retryable=True) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Storage failure while posting transfer", exc_info=True)
            raise TransferFailed("Failed to process internal transfer") from exc
        except Exception:
            db.rollback()
            raise

        logger.info(f"Posted internal transfer rule={rule_id} outbound_tx={outbound_id}")
        return TransferResult(
            success=True,
            message=COMPLETED_MESSAGE,
            transaction_id=outbound_id,
            amount=instruction.amount_cents,
            transfer_rule_id=rule_id,
        )

    def _post(self, db: Session, instruction: TransferInstruction) -> tuple[int, int]:
        self._lock_accounts(db, instruction)
        now = utcnow_naive()
        rule = TransferRule(
            user_id=instruction.requester_id,
            transfer_kind=TransferRule.KIND_ONE_OFF,
            direction=Transaction.DIRECTION_OUTBOUND,
            amount_cents=instruction.amount_cents,
            start_time=now,
            run_at=now,
            source_internal_id=instruction.source_account_id,
            destination_internal_id=instruction.destination_account_id,
        )
        db.add(rule)
        db.flush()

        base = idempotency.base_key(instruction.requester_id, instruction.idempotency_key, rule.id)
        outbound_key, inbound_key = idempotency.leg_keys(base)

        outbound = self._post_leg(
            db,
            account_id=instruction.source_account_id,
            amount_cents=-instruction.amount_cents,
            direction=Transaction.DIRECTION_OUTBOUND,
            rule_id=rule.id,
            key=outbound_key,
            created_at=now,
        )
        self._debit(db, instruction)
        self._post_leg(
            db,
            account_id=instruction.destination_account_id,
            amount_cents=instruction.amount_cents,
            direction=Transaction.DIRECTION_INBOUND,
            rule_id=rule.id,
            key=inbound_key,
            created_at=now,
        )
        self._credit(db, instruction)

        return rule.id, outbound.id

    def _lock_accounts(self, db: Session, instruction: TransferInstruction) -> None:
        # Both rows, always in ascending id order, before either balance changes.
        db.execute(
            select(InternalAccount.id)
            .where(
                InternalAccount.id.in_([instruction.source_account_id, instruction.destination_account_id])
            )
            .order_by(InternalAccount.id)
            .with_for_update()
        ).all()

    def _post_leg(
        self,
        db: Session,
        *,
        account_id: int,
        amount_cents: int,
        direction: str,
        rule_id: int,
        key: str,
        created_at: datetime,
    ) -> Transaction:
        leg = Transaction(
            internal_account_id=account_id,
            amount_cents=amount_cents,
            transaction_type=Transaction.TYPE_INTERNAL_TRANSFER,
            direction=direction,
            status=Transaction.STATUS_APPROVED,
            transfer_rule_id=rule_id,
            idempotency_key=key,
            created_at=created_at,
        )
        db.add(leg)
        db.flush()
        return leg

    def _debit(self, db: Session, instruction: TransferInstruction) -> None:
        result = db.execute(
            update(InternalAccount)
            .where(
                InternalAccount.id == instruction.source_account_id,
                InternalAccount.user_id == instruction.requester_id,
                InternalAccount.is_active.is_(True),
                InternalAccount.balance_cents >= instruction.amount_cents,
            )
            .values(balance_cents=InternalAccount.balance_cents - instruction.amount_cents)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._raise_lost_debit(db, instruction)

    def _credit(self, db: Session, instruction: TransferInstruction) -> None:
        result = db.execute(
            update(InternalAccount)
            .where(
                InternalAccount.id == instruction.destination_account_id,
                InternalAccount.user_id == instruction.requester_id,
                InternalAccount.is_active.is_(True),
            )
            .values(balance_cents=InternalAccount.balance_cents + instruction.amount_cents)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            row = self._current_state(db, instruction.destination_account_id, instruction.requester_id)
            if row is None:
                raise NotFound("Destination account not found or does not belong to user", side=DESTINATION)
            if not row.is_active:
                raise AccountInactive("Destination account is inactive", side=DESTINATION)
            raise TransferFailed("Destination account changed during transfer", retryable=True)

    def _raise_lost_debit(self, db: Session, instruction: TransferInstruction) -> None:
        # Re-read inside the same transaction to report why the guarded debit matched nothing.
        row = self._current_state(db, instruction.source_account_id, instruction.requester_id)
        if row is None:
            raise NotFound("Source account not found or does not belong to user", side=SOURCE)
        if not row.is_active:
            raise AccountInactive("Source account is inactive", side=SOURCE)
        if row.balance_cents < instruction.amount_cents:
            raise InsufficientFunds("Insufficient funds")
        raise TransferFailed("Source account changed during transfer", retryable=True)

    def _current_state(self, db: Session, account_id: int, requester_id: int):
        return db.execute(
            select(InternalAccount.balance_cents, InternalAccount.is_active).where(
                InternalAccount.id == account_id,
                InternalAccount.user_id == requester_id,
            )
        ).one_or_none()
