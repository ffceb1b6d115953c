"""SQLModel implementation of the budget period repository."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ...domain.balance import ZERO, BalanceSummary, summarize_balance, to_money
from ...domain.months import next_month_label, parse_month_label
from ...domain.repositories.period import ResetOutcome
from ...errors import (
    ArchivedPeriodError,
    DecisionRequired,
    PeriodAlreadyArchived,
    PeriodNotFound,
    TransactionFailed,
)
from ...logging_config import get_logger
from ...models.budget import Allocation, Budget, BudgetPeriod
from ...models.category import Category
from ...models.expense import Expense
from ...models.rollover import RolloverChoice, RolloverRecord
from ..database import SessionFactory

logger = get_logger(__name__)


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug or "uncategorized"


def _non_negative(amount) -> Decimal:
    value = to_money(amount)
    if value < ZERO:
        raise ValueError(f"Amount must be non-negative, got {value}")
    return value


class SQLModelPeriodRepository:
    """SQLModel-based budget period repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    # Budgets and periods
    def create_budget(
        self, name: str, *, month_label: str, income, currency: str = "PKR"
    ) -> tuple[Budget, BudgetPeriod]:
        """Create a budget together with its first active period."""
        parse_month_label(month_label)
        opening_income = to_money(income)
        if opening_income <= ZERO:
            raise ValueError("Opening income must be positive")

        with self.session_factory() as session:
            budget = Budget(name=name, currency=currency.upper())
            session.add(budget)
            session.flush()
            period = BudgetPeriod(
                budget_id=budget.id, month_label=month_label.strip(), income=opening_income
            )
            session.add(period)
            session.commit()
            session.refresh(budget)
            session.refresh(period)
            session.expunge(budget)
            session.expunge(period)
            return budget, period

    def get_budget(self, budget_id: int) -> Optional[Budget]:
        with self.session_factory() as session:
            return session.get(Budget, budget_id)

    def get_period(self, period_id: int) -> Optional[BudgetPeriod]:
        """Retrieve a period by ID."""
        with self.session_factory() as session:
            return session.get(BudgetPeriod, period_id)

    def get_active_period(self, budget_id: int) -> Optional[BudgetPeriod]:
        """Return the single non-archived period of a budget."""
        with self.session_factory() as session:
            statement = (
                select(BudgetPeriod)
                .where(BudgetPeriod.budget_id == budget_id)
                .where(BudgetPeriod.archived_at.is_(None))  # type: ignore[union-attr]
            )
            return session.exec(statement).first()

    def list_periods(self, budget_id: int) -> list[BudgetPeriod]:
        """List every period of a budget, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(BudgetPeriod)
                .where(BudgetPeriod.budget_id == budget_id)
                .order_by(BudgetPeriod.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    # Categories, allocations and expenses
    def get_or_create_category(self, budget_id: int, name: str) -> Category:
        slug = _slugify(name)
        with self.session_factory() as session:
            category = session.exec(
                select(Category).where(Category.budget_id == budget_id, Category.slug == slug)
            ).first()
            if category is None:
                category = Category(budget_id=budget_id, name=name.strip(), slug=slug)
                session.add(category)
                session.commit()
                session.refresh(category)
            session.expunge(category)
            return category

    def list_categories(self, budget_id: int) -> list[Category]:
        with self.session_factory() as session:
            statement = select(Category).where(Category.budget_id == budget_id).order_by(Category.name)
            return list(session.exec(statement).all())

    def get_allocations(self, period_id: int) -> list[Allocation]:
        """Get all allocations for a period."""
        with self.session_factory() as session:
            statement = (
                select(Allocation)
                .where(Allocation.period_id == period_id)
                .order_by(Allocation.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def get_expenses(self, period_id: int) -> list[Expense]:
        """Get all expenses for a period."""
        with self.session_factory() as session:
            statement = (
                select(Expense)
                .where(Expense.period_id == period_id)
                .order_by(Expense.occurred_at, Expense.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def add_allocation(self, period_id: int, category_id: int, amount) -> Allocation:
        """Allocate an amount to a category of an active period."""
        value = _non_negative(amount)
        with self.session_factory() as session:
            self._claim_active(session, period_id)
            allocation = Allocation(period_id=period_id, category_id=category_id, amount=value)
            session.add(allocation)
            session.commit()
            session.refresh(allocation)
            session.expunge(allocation)
            return allocation

    def record_expense(
        self,
        period_id: int,
        category_id: int,
        amount,
        description: str = "",
        occurred_at: datetime | None = None,
    ) -> Expense:
        """Book an expense against an active period."""
        value = _non_negative(amount)
        with self.session_factory() as session:
            self._claim_active(session, period_id)
            expense = Expense(
                period_id=period_id,
                category_id=category_id,
                amount=value,
                description=description,
            )
            if occurred_at is not None:
                expense.occurred_at = occurred_at
            session.add(expense)
            session.commit()
            session.refresh(expense)
            session.expunge(expense)
            return expense

    def _claim_active(self, session, period_id: int) -> BudgetPeriod:
        """Take the write lock on an active period for the rest of the transaction.

        The no-op UPDATE only matches a non-archived row, so a reset cannot
        archive the period between this check and the caller's insert.
        """
        claimed = session.exec(  # type: ignore[call-overload]
            update(BudgetPeriod)
            .where(BudgetPeriod.id == period_id)  # type: ignore[arg-type]
            .where(BudgetPeriod.archived_at.is_(None))  # type: ignore[union-attr]
            .values(id=BudgetPeriod.id)
            .execution_options(synchronize_session=False)
        )
        period = session.get(BudgetPeriod, period_id)
        if period is None:
            raise PeriodNotFound(f"Budget period {period_id} does not exist.")
        if claimed.rowcount != 1:
            raise ArchivedPeriodError(f"Budget period {period_id} is archived.")
        return period

    def _period_summary(self, session, period_id: int) -> BalanceSummary:
        allocations = session.exec(select(Allocation).where(Allocation.period_id == period_id)).all()
        expenses = session.exec(select(Expense).where(Expense.period_id == period_id)).all()
        return summarize_balance(allocations, expenses)

    # Rollover history
    def get_rollover_record(self, source_period_id: int) -> Optional[RolloverRecord]:
        with self.session_factory() as session:
            return session.exec(
                select(RolloverRecord).where(RolloverRecord.source_period_id == source_period_id)
            ).first()

    def list_rollover_records(self, budget_id: int) -> list[RolloverRecord]:
        with self.session_factory() as session:
            statement = (
                select(RolloverRecord)
                .join(BudgetPeriod, BudgetPeriod.id == RolloverRecord.source_period_id)  # type: ignore[arg-type]
                .where(BudgetPeriod.budget_id == budget_id)
                .order_by(RolloverRecord.id)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    # Reset
    def reset_period(
        self,
        period_id: int,
        new_income,
        include_rollover: bool,
        *,
        decision_made: bool = True,
    ) -> ResetOutcome:
        """Archive the period, open its successor and record the rollover as one commit.

        The period is archived before the remaining balance is recomputed inside
        this transaction, so no record can slip in between the two and the
        rollover never rests on figures read earlier. If anything fails, the
        session rolls back and the source period stays active with its
        records untouched.
        """
        income = to_money(new_income)
        try:
            with self.session_factory() as session:
                period = session.get(BudgetPeriod, period_id)
                if period is None:
                    raise PeriodNotFound(f"Budget period {period_id} does not exist.")
                if period.archived_at is not None:
                    raise PeriodAlreadyArchived(f"Budget period {period_id} is already archived.")

                # Archive first: the write lock keeps new records out while the balance is read.
                archived = session.exec(  # type: ignore[call-overload]
                    update(BudgetPeriod)
                    .where(BudgetPeriod.id == period_id)  # type: ignore[arg-type]
                    .where(BudgetPeriod.archived_at.is_(None))  # type: ignore[union-attr]
                    .values(archived_at=datetime.now(timezone.utc))
                )
                if archived.rowcount != 1:
                    raise PeriodAlreadyArchived(f"Budget period {period_id} is already archived.")

                summary = self._period_summary(session, period_id)
                remaining = summary.remaining_balance

                if remaining > ZERO and not decision_made:
                    raise DecisionRequired()

                included = include_rollover and remaining > ZERO
                rollover_amount = remaining if included else ZERO
                choice = RolloverChoice.INCLUDED if included else RolloverChoice.EXCLUDED

                successor = BudgetPeriod(
                    budget_id=period.budget_id,
                    month_label=next_month_label(period.month_label),
                    income=income + rollover_amount,
                )
                session.add(successor)
                session.flush()

                record = RolloverRecord(
                    source_period_id=period_id,
                    destination_period_id=successor.id,
                    decision=choice.value,
                    amount=rollover_amount,
                    remaining_balance=remaining,
                    new_income=successor.income,
                )
                session.add(record)
                session.flush()

                outcome = ResetOutcome(
                    budget_id=period.budget_id,
                    archived_period_id=period_id,
                    new_period_id=successor.id,
                    rollover_record_id=record.id,
                    decision=choice.value,
                    remaining_balance=remaining,
                    rollover_amount=rollover_amount,
                    new_income=successor.income,
                    archived_expense_count=summary.expense_count,
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "Period reset rolled back",
                exc_info=True,
                extra={"period_id": period_id},
            )
            raise TransactionFailed() from exc

        logger.info(
            "Period reset committed",
            extra={
                "budget_id": outcome.budget_id,
                "archived_period_id": outcome.archived_period_id,
                "new_period_id": outcome.new_period_id,
                "decision": outcome.decision,
                "rollover_amount": str(outcome.rollover_amount),
            },
        )
        return outcome
