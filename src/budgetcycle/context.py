"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelPeriodRepository
from .services.balance import BalanceCalculator
from .services.controller import ResetController
from .services.notifications import LoggingNotifier, Notifier
from .services.reset import ResetTransaction


@dataclass
class AppContext:
    """Centralized wiring of configuration, repositories and services."""

    config: BaseConfig
    session_factory: SessionFactory
    period_repo: SQLModelPeriodRepository
    calculator: BalanceCalculator
    reset_transaction: ResetTransaction
    notifier: Notifier

    def reset_controller(self, period_id: int) -> ResetController:
        """Build a controller for one reset attempt of ``period_id``."""
        return ResetController(
            period_id=period_id,
            calculator=self.calculator,
            transaction=self.reset_transaction,
            notifier=self.notifier,
        )


def create_app_context(
    config: Optional[BaseConfig] = None, notifier: Optional[Notifier] = None
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    period_repo = SQLModelPeriodRepository(session_factory)
    return AppContext(
        config=config,
        session_factory=session_factory,
        period_repo=period_repo,
        calculator=BalanceCalculator(period_repo),
        reset_transaction=ResetTransaction(period_repo),
        notifier=notifier or LoggingNotifier(),
    )
