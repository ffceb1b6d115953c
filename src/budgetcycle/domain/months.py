"""Month labels (``YYYY-MM``) used to name budget periods."""

from __future__ import annotations

import re

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month_label(label: str) -> tuple[int, int]:
    """Return (year, month) for a label, raising ValueError when malformed."""

    match = _LABEL_RE.match(label.strip()) if label else None
    if match is None:
        raise ValueError(f"Month label must look like YYYY-MM, got {label!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {label!r}")
    return year, month


def next_month_label(label: str) -> str:
    year, month = parse_month_label(label)
    if month == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{month + 1:02d}"
