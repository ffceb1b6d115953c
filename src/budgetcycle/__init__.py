"""BudgetCycle: close out budget periods with optional balance rollover."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .context import AppContext, create_app_context
from .errors import BudgetCycleError

__all__ = ["AppContext", "BaseConfig", "BudgetCycleError", "DevConfig", "create_app_context"]
