"""CSV export of archived period history."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from ..models.budget import Allocation
from ..models.expense import Expense
from ..models.rollover import RolloverRecord

EXPENSE_COLUMNS = ["id", "period_id", "category_id", "amount", "description", "occurred_at"]
ALLOCATION_COLUMNS = ["id", "period_id", "category_id", "amount"]
ROLLOVER_COLUMNS = [
    "id",
    "source_period_id",
    "destination_period_id",
    "decision",
    "remaining_balance",
    "amount",
    "new_income",
    "created_at",
]


def _serialize_value(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_rows(rows: Iterable[object], headers: Sequence[str], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(
            fh, fieldnames=list(headers), extrasaction="ignore", quoting=csv.QUOTE_MINIMAL
        )
        writer.writeheader()
        for row in rows:
            writer.writerow({name: _serialize_value(getattr(row, name, None)) for name in headers})

    return output_path


def export_period_expenses_csv(*, expenses: Iterable[Expense], output_path: Path) -> Path:
    """Write expenses to CSV at `output_path`.

    Columns are deterministic: id, period_id, category_id, amount, description, occurred_at.
    Returns the path written.
    """
    return _write_rows(expenses, EXPENSE_COLUMNS, output_path)


def export_period_allocations_csv(*, allocations: Iterable[Allocation], output_path: Path) -> Path:
    return _write_rows(allocations, ALLOCATION_COLUMNS, output_path)


def export_rollover_history_csv(*, records: Iterable[RolloverRecord], output_path: Path) -> Path:
    """Write one row per completed reset, oldest first as given."""
    return _write_rows(records, ROLLOVER_COLUMNS, output_path)
