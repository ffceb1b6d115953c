"""Remaining-balance arithmetic shared by the calculator and the reset commit."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable

from ..errors import InvalidIncome
from ..models.budget import Allocation
from ..models.expense import Expense

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a stored or user amount into a two-place Decimal."""

    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT)


def parse_income(raw) -> Decimal:
    """Parse user-entered income into a positive two-place Decimal.

    Accepts strings, ints, floats and Decimals. Blank, non-numeric, non-finite,
    zero and negative values raise InvalidIncome.
    """

    if raw is None or isinstance(raw, bool):
        raise InvalidIncome()
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise InvalidIncome()
    try:
        value = Decimal(str(raw)) if isinstance(raw, float) else Decimal(raw)
        if not value.is_finite():
            raise InvalidIncome()
        value = value.quantize(CENT)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidIncome() from exc
    if value <= ZERO:
        raise InvalidIncome()
    return value


@dataclass(frozen=True, slots=True)
class BalanceSummary:
    """Totals for one period as seen at a single point in time."""

    total_allocated: Decimal
    total_spent: Decimal
    expense_count: int

    @property
    def remaining_balance(self) -> Decimal:
        """Unspent allocation, floored at zero when the period overspent."""
        return max(ZERO, self.total_allocated - self.total_spent)


def summarize_balance(
    allocations: Iterable[Allocation], expenses: Iterable[Expense]
) -> BalanceSummary:
    total_allocated = sum((to_money(a.amount) for a in allocations), ZERO)
    spent = [to_money(e.amount) for e in expenses]
    return BalanceSummary(
        total_allocated=total_allocated,
        total_spent=sum(spent, ZERO),
        expense_count=len(spent),
    )
