"""Remaining-balance computation for a budget period."""

from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..domain.balance import BalanceSummary, summarize_balance
from ..errors import DataUnavailable
from ..logging_config import get_logger
from ..models.budget import Allocation, BudgetPeriod
from ..models.expense import Expense

logger = get_logger(__name__)


class BalanceSource(Protocol):
    """Abstraction for fetching a period and its allocations and expenses."""

    def get_period(self, period_id: int) -> Optional[BudgetPeriod]:  # pragma: no cover - interface
        ...

    def get_allocations(self, period_id: int) -> list[Allocation]:  # pragma: no cover - interface
        ...

    def get_expenses(self, period_id: int) -> list[Expense]:  # pragma: no cover - interface
        ...


class BalanceCalculator:
    """Derive remaining balance and expense count from raw period records."""

    def __init__(self, source: BalanceSource):
        self.source = source

    def compute(self, period_id: int) -> BalanceSummary:
        """Return the summary for ``period_id`` or raise DataUnavailable.

        The period must exist and both reads must succeed; a partial summary
        is never returned.
        """
        try:
            period = self.source.get_period(period_id)
            if period is None:
                logger.warning("Balance requested for unknown period", extra={"period_id": period_id})
                raise DataUnavailable(f"Budget period {period_id} does not exist.")
            allocations = self.source.get_allocations(period_id)
            expenses = self.source.get_expenses(period_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.warning(
                "Could not read balance inputs",
                extra={"period_id": period_id, "error": str(exc)},
            )
            raise DataUnavailable() from exc

        summary = summarize_balance(allocations, expenses)
        logger.debug(
            "Computed period balance",
            extra={
                "period_id": period_id,
                "remaining_balance": str(summary.remaining_balance),
                "expense_count": summary.expense_count,
            },
        )
        return summary
