"""Repository protocol definitions for domain layer."""

from .period import BudgetAdminRepository, PeriodRepository, ResetOutcome

__all__ = ["BudgetAdminRepository", "PeriodRepository", "ResetOutcome"]
