"""Exception hierarchy for the period reset flow."""

from __future__ import annotations


class BudgetCycleError(Exception):
    """Base class for every error raised by budgetcycle."""

    default_message = "Budget operation failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# Validation: local, pre-commit, shown inline next to the form.


class ResetValidationError(BudgetCycleError):
    """Input the user can correct before resubmitting."""


class InvalidIncome(ResetValidationError):
    default_message = "Please enter a valid income amount"


class DecisionRequired(ResetValidationError):
    default_message = "Please choose whether to include remaining balance"


# Reads and commits.


class DataUnavailable(BudgetCycleError):
    """Balance inputs could not be read; the reset must not be offered."""

    default_message = "Failed to load budget data."


class TransactionFailed(BudgetCycleError):
    """The atomic reset did not commit. Nothing was written."""

    default_message = "Failed to reset budget. Please try again."


class PeriodNotFound(TransactionFailed):
    default_message = "Budget period does not exist."


class PeriodAlreadyArchived(TransactionFailed):
    default_message = "Budget period has already been reset."


class ArchivedPeriodError(BudgetCycleError):
    """Allocations and expenses of an archived period are read-only."""

    default_message = "Archived periods cannot be modified."


# Gate and controller state.


class GateError(BudgetCycleError):
    default_message = "Rollover choice is not available."


class InvalidTransition(GateError):
    default_message = "Rollover choice cannot change from its current state."


class GateClosed(GateError):
    default_message = "Rollover choice was already submitted."


class ResubmissionBlocked(BudgetCycleError):
    default_message = "A reset is already in progress."


__all__ = [
    "ArchivedPeriodError",
    "BudgetCycleError",
    "DataUnavailable",
    "DecisionRequired",
    "GateClosed",
    "GateError",
    "InvalidIncome",
    "InvalidTransition",
    "PeriodAlreadyArchived",
    "PeriodNotFound",
    "ResetValidationError",
    "ResubmissionBlocked",
    "TransactionFailed",
]
