"""Period reset: validate the request, then archive and recreate in one commit."""

from __future__ import annotations

import threading
import weakref
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.balance import ZERO, parse_income, to_money
from ..domain.repositories.period import PeriodRepository, ResetOutcome
from ..errors import DecisionRequired, PeriodNotFound, TransactionFailed
from ..logging_config import get_logger
from .rollover_gate import RolloverDecision

logger = get_logger(__name__)

# Entries drop out once no reset holds the lock.
_LINEAGE_LOCKS: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
_LINEAGE_LOCKS_GUARD = threading.Lock()


def _lineage_lock(budget_id: int) -> threading.Lock:
    """Return the process-wide lock serializing resets of one budget."""

    with _LINEAGE_LOCKS_GUARD:
        lock = _LINEAGE_LOCKS.get(budget_id)
        if lock is None:
            lock = _LINEAGE_LOCKS[budget_id] = threading.Lock()
        return lock


class ResetTransaction:
    """Closes a budget period and opens its successor.

    Validation happens before anything touches storage. The commit itself is a
    single ``reset_period`` call on the repository, which recomputes the
    remaining balance inside its own transaction.
    """

    def __init__(self, repository: PeriodRepository):
        self.repository = repository

    def execute(
        self,
        period_id: int,
        new_income,
        decision: RolloverDecision,
        remaining_balance: Optional[Decimal] = None,
    ) -> ResetOutcome:
        income = parse_income(new_income)
        balance = to_money(remaining_balance) if remaining_balance is not None else None
        if (
            decision is RolloverDecision.UNDECIDED
            and balance is not None
            and balance > ZERO
        ):
            raise DecisionRequired()

        logger.info(
            "Reset requested",
            extra={
                "period_id": period_id,
                "new_income": str(income),
                "decision": decision.value,
            },
        )

        try:
            period = self.repository.get_period(period_id)
        except SQLAlchemyError as exc:
            raise TransactionFailed() from exc
        if period is None:
            raise PeriodNotFound(f"Budget period {period_id} does not exist.")

        with _lineage_lock(period.budget_id):
            try:
                return self.repository.reset_period(
                    period_id,
                    income,
                    decision is RolloverDecision.INCLUDE,
                    decision_made=decision is not RolloverDecision.UNDECIDED,
                )
            except SQLAlchemyError as exc:
                raise TransactionFailed() from exc
