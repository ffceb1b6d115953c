"""Reset flow controller sitting between the form and the core services."""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Optional

from ..domain.balance import ZERO, parse_income
from ..domain.repositories.period import ResetOutcome
from ..errors import (
    DataUnavailable,
    DecisionRequired,
    InvalidIncome,
    ResetValidationError,
    ResubmissionBlocked,
    TransactionFailed,
)
from ..logging_config import get_logger
from .balance import BalanceCalculator
from .notifications import RESET_FAILURE, RESET_INVALIDATION_KEYS, RESET_SUCCESS, Notifier
from .reset import ResetTransaction
from .rollover_gate import RolloverGate

logger = get_logger(__name__)


class ResetController:
    """Drives one reset attempt for a period.

    ``open`` loads the balance and builds a fresh gate; ``submit`` validates
    the raw income, runs the transaction and reports the outcome to the
    notifier. A pending or completed submit blocks any further submit.
    """

    def __init__(
        self,
        *,
        period_id: int,
        calculator: BalanceCalculator,
        transaction: ResetTransaction,
        notifier: Notifier,
    ):
        self.period_id = period_id
        self.calculator = calculator
        self.transaction = transaction
        self.notifier = notifier

        self.gate: Optional[RolloverGate] = None
        self.remaining_balance: Decimal = ZERO
        self.expense_count = 0
        self.validation_error = ""
        self.outcome: Optional[ResetOutcome] = None
        self._pending = False
        self._state_lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def loaded(self) -> bool:
        return self.gate is not None

    def open(self) -> RolloverGate:
        """Compute the balance and start with an undecided gate."""
        self.gate = None
        self.validation_error = ""
        try:
            summary = self.calculator.compute(self.period_id)
        except DataUnavailable:
            logger.error("Failed to load budget data", extra={"period_id": self.period_id})
            raise
        self.remaining_balance = summary.remaining_balance
        self.expense_count = summary.expense_count
        self.gate = RolloverGate(summary.remaining_balance)
        return self.gate

    @property
    def archive_notice(self) -> str:
        plural = "" if self.expense_count == 1 else "s"
        return (
            f"This will archive {self.expense_count} current expense{plural} and start fresh. "
            "All data will be preserved for history and exports."
        )

    def total_available(self, raw_income) -> Decimal:
        """Preview of the new income baseline; unparseable input counts as zero."""
        if self.gate is None:
            return ZERO
        try:
            return self.gate.total_available(raw_income)
        except InvalidIncome:
            return self.gate.rollover_amount

    def submit(self, raw_income) -> Optional[ResetOutcome]:
        """Run the reset; returns the outcome, or None when it did not commit.

        Validation problems land in ``validation_error``. Commit failures send
        the failure notification and leave every cache key untouched.
        """
        if self.gate is None:
            raise DataUnavailable("Budget data must load before a reset can be submitted.")

        with self._state_lock:
            if self._pending or self.gate.submitted:
                raise ResubmissionBlocked()
            self._pending = True

        self.validation_error = ""
        try:
            income = parse_income(raw_income)
            self.gate.ensure_ready()
            outcome = self.transaction.execute(
                self.period_id, income, self.gate.state, self.remaining_balance
            )
            self.gate.mark_submitted()
        except DecisionRequired as exc:
            if not self.gate.required:
                # Balance became positive after the form opened.
                self.open()
            self.validation_error = exc.message
            return None
        except ResetValidationError as exc:
            self.validation_error = exc.message
            return None
        except TransactionFailed:
            logger.error(
                "Reset budget error", exc_info=True, extra={"period_id": self.period_id}
            )
            self.notifier.notify(RESET_FAILURE)
            return None
        finally:
            with self._state_lock:
                self._pending = False

        self.outcome = outcome
        for key in sorted(RESET_INVALIDATION_KEYS):
            self.notifier.invalidate(key)
        self.notifier.notify(RESET_SUCCESS)
        return outcome
