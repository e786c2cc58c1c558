from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from bankledger.core.config import Settings
from bankledger.core.errors import InternalError, LedgerError
from bankledger.transfers.executor import TransferExecutor
from bankledger.transfers.idempotency import IdempotencyGuard, normalize_caller_key
from bankledger.transfers.types import TransferRequest, TransferResult
from bankledger.transfers.validator import check_amount, check_distinct, validate_transfer

logger = logging.getLogger(__name__)


class TransferEngine:
    """Validate, de-duplicate and post internal transfers.

    Holds no per-request state; one instance serves the whole process and
    every call works only through the session it is given.
    """

    def __init__(
        self,
        settings: Settings,
        executor: TransferExecutor | None = None,
        guard: IdempotencyGuard | None = None,
    ):
        self.max_transfer_cents = settings.max_transfer_cents
        self.executor = executor or TransferExecutor()
        self.guard = guard or IdempotencyGuard()

    def transfer(
        self,
        db: Session,
        *,
        requester_id: int,
        source_account_id: int,
        destination_account_id: int,
        amount_cents: int,
        idempotency_key: str | None = None,
    ) -> TransferResult:
        request = TransferRequest(
            requester_id=requester_id,
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            amount_cents=amount_cents,
        )
        try:
            check_amount(amount_cents, self.max_transfer_cents)
            check_distinct(source_account_id, destination_account_id)
            request = replace(request, idempotency_key=normalize_caller_key(idempotency_key))
            return self.guard.run(db, request, lambda: self._validate_and_execute(db, request))
        except LedgerError as exc:
            db.rollback()
            logger.warning(f"Transfer rejected for user {requester_id}: {exc.code}")
            raise
        except Exception as exc:
            db.rollback()
            logger.exception(f"Unexpected error while processing transfer for user {requester_id}")
            raise InternalError("Failed to process internal transfer") from exc

    def _validate_and_execute(self, db: Session, request: TransferRequest) -> TransferResult:
        instruction = validate_transfer(db, request, max_cents=self.max_transfer_cents)
        return self.executor.execute(db, instruction)
