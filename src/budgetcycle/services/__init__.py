"""Service module exports."""

from . import balance, controller, export_csv, notifications, reset, rollover_gate

__all__ = [
    "balance",
    "controller",
    "export_csv",
    "notifications",
    "reset",
    "rollover_gate",
]
