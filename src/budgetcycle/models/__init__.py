"""SQLModel table exports."""

from .budget import Allocation, Budget, BudgetPeriod
from .category import Category
from .expense import Expense
from .rollover import RolloverChoice, RolloverRecord

__all__ = [
    "Allocation",
    "Budget",
    "BudgetPeriod",
    "Category",
    "Expense",
    "RolloverChoice",
    "RolloverRecord",
]
