"""Cache-invalidation and user notification collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)

# Views that read budget state and go stale after a reset.
RESET_INVALIDATION_KEYS: frozenset[str] = frozenset(
    {"budget", "expenses", "budget-summary", "categories-with-allocations"}
)


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    variant: str = "default"  # default | destructive


RESET_SUCCESS = Notification(
    title="Budget Reset Successfully",
    description="Your monthly budget has been reset with new income.",
)
RESET_FAILURE = Notification(
    title="Error",
    description="Failed to reset budget. Please try again.",
    variant="destructive",
)


class Notifier(Protocol):
    """Receives cache invalidations and user-facing notifications."""

    def invalidate(self, key: str) -> None:  # pragma: no cover - interface
        ...

    def notify(self, notification: Notification) -> None:  # pragma: no cover - interface
        ...


class LoggingNotifier:
    """Notifier that only writes to the log; used by the CLI."""

    def invalidate(self, key: str) -> None:
        logger.info("Cache invalidated", extra={"cache_key": key})

    def notify(self, notification: Notification) -> None:
        level = "warning" if notification.variant == "destructive" else "info"
        getattr(logger, level)(
            notification.title,
            extra={"description": notification.description, "variant": notification.variant},
        )
