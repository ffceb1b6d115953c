"""Expense records booked against a budget period."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Expense(SQLModel, table=True):
    """A single spend recorded while its period was active."""

    __tablename__: ClassVar[str] = "expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    period_id: int = Field(foreign_key="budget_period.id", nullable=False, index=True)
    category_id: int = Field(foreign_key="category.id", nullable=False)
    amount: Decimal = Field(max_digits=14, decimal_places=2, nullable=False)
    description: str = Field(default="", max_length=255)
    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
