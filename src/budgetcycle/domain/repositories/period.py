"""Budget period repository protocol."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from ...models.budget import Allocation, Budget, BudgetPeriod
from ...models.category import Category
from ...models.expense import Expense
from ...models.rollover import RolloverRecord


@dataclass(frozen=True, slots=True)
class ResetOutcome:
    """Result of a committed period reset."""

    budget_id: int
    archived_period_id: int
    new_period_id: int
    rollover_record_id: int
    decision: str
    remaining_balance: Decimal
    rollover_amount: Decimal
    new_income: Decimal
    archived_expense_count: int


class PeriodRepository(Protocol):
    """Persistence operations the reset flow depends on."""

    def get_period(self, period_id: int) -> Optional[BudgetPeriod]:
        """Retrieve a period by ID."""
        ...

    def get_active_period(self, budget_id: int) -> Optional[BudgetPeriod]:
        """Return the single non-archived period of a budget."""
        ...

    def get_allocations(self, period_id: int) -> list[Allocation]:
        """Get all allocations for a period."""
        ...

    def get_expenses(self, period_id: int) -> list[Expense]:
        """Get all expenses for a period."""
        ...

    def reset_period(
        self,
        period_id: int,
        new_income: Decimal,
        include_rollover: bool,
        *,
        decision_made: bool = True,
    ) -> ResetOutcome:
        """Archive the period, open its successor and record the rollover as one commit."""
        ...


class BudgetAdminRepository(Protocol):
    """Operations for creating budgets and booking records on active periods."""

    def create_budget(
        self, name: str, *, month_label: str, income: Decimal, currency: str = "PKR"
    ) -> tuple[Budget, BudgetPeriod]:
        ...

    def get_or_create_category(self, budget_id: int, name: str) -> Category:
        ...

    def add_allocation(self, period_id: int, category_id: int, amount: Decimal) -> Allocation:
        ...

    def record_expense(
        self, period_id: int, category_id: int, amount: Decimal, description: str = ""
    ) -> Expense:
        ...

    def list_periods(self, budget_id: int) -> list[BudgetPeriod]:
        ...

    def list_rollover_records(self, budget_id: int) -> list[RolloverRecord]:
        ...
