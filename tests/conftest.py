"""Pytest configuration and shared fixtures for BudgetCycle tests.

Each test gets its own temporary SQLite database, so repositories and
services run against real tables without touching the app database.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Sequence

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from budgetcycle import models  # noqa: F401  # register tables with SQLModel metadata
from budgetcycle.infra.repositories import SQLModelPeriodRepository
from budgetcycle.services.balance import BalanceCalculator
from budgetcycle.services.reset import ResetTransaction

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so they never outlive a test."""
    yield
    logger = logging.getLogger("budgetcycle")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    # Short busy timeout: a writer blocked by another transaction fails fast.
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 1},
    )

    @event.listens_for(engine, "connect")
    def _foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching ``infra.database.create_session_factory``."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture
def failing_commit_factory(db_engine):
    """Session factory whose commit always fails, as if storage went away."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)

        def _commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        session.commit = _commit  # type: ignore[method-assign]
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture
def period_repo(session_factory) -> SQLModelPeriodRepository:
    return SQLModelPeriodRepository(session_factory)


@pytest.fixture
def calculator(period_repo) -> BalanceCalculator:
    return BalanceCalculator(period_repo)


@pytest.fixture
def reset_transaction(period_repo) -> ResetTransaction:
    return ResetTransaction(period_repo)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def period_factory(period_repo):
    """Factory creating a budget with one active period and its records.

    Returns:
        Callable: Function returning the persisted active BudgetPeriod
    """

    def _create_period(
        *,
        allocations: Sequence[str | int | Decimal] = (),
        expenses: Sequence[str | int | Decimal] = (),
        income: str = "50000",
        month_label: str = "2025-01",
        name: str = "Household",
    ):
        """Create a period with one allocation/expense per listed amount.

        Args:
            allocations: Allocated amounts, booked under "General"
            expenses: Expense amounts, booked under "General"
            income: Opening income of the period
            month_label: YYYY-MM label of the period

        Returns:
            BudgetPeriod: The active period
        """
        _, period = period_repo.create_budget(name, month_label=month_label, income=income)
        category = period_repo.get_or_create_category(period.budget_id, "General")
        for amount in allocations:
            period_repo.add_allocation(period.id, category.id, amount)
        for amount in expenses:
            period_repo.record_expense(period.id, category.id, amount, description="test")
        return period

    return _create_period


class RecordingNotifier:
    """Notifier double keeping every call for assertions."""

    def __init__(self):
        self.invalidated: list[str] = []
        self.notifications = []

    def invalidate(self, key: str) -> None:
        self.invalidated.append(key)

    def notify(self, notification) -> None:
        self.notifications.append(notification)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# =============================================================================
# Helper Utilities
# =============================================================================


def snapshot_period_state(repo: SQLModelPeriodRepository, period_id: int) -> dict:
    """Capture everything a failed reset must leave unchanged."""

    period = repo.get_period(period_id)
    return {
        "allocations": [(a.id, a.category_id, a.amount) for a in repo.get_allocations(period_id)],
        "expenses": [
            (e.id, e.category_id, e.amount, e.description) for e in repo.get_expenses(period_id)
        ],
        "archived_at": period.archived_at,
        "active_period_id": repo.get_active_period(period.budget_id).id,
        "periods": len(repo.list_periods(period.budget_id)),
        "rollovers": len(repo.list_rollover_records(period.budget_id)),
    }


@pytest.fixture
def period_snapshot(period_repo):
    """Return a callable capturing a period's state through the healthy repository."""

    def _snapshot(period_id: int) -> dict:
        return snapshot_period_state(period_repo, period_id)

    return _snapshot
