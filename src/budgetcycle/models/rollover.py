"""Audit record written by every completed period reset."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class RolloverChoice(str, Enum):
    """Stored outcome of the rollover decision."""

    INCLUDED = "included"
    EXCLUDED = "excluded"


class RolloverRecord(SQLModel, table=True):
    """Links an archived period to its successor.

    ``amount`` is what flowed into the new income baseline (zero when
    excluded); ``remaining_balance`` is what was left at reset time either way.
    """

    __tablename__: ClassVar[str] = "rollover_record"

    id: Optional[int] = Field(default=None, primary_key=True)
    source_period_id: int = Field(foreign_key="budget_period.id", nullable=False, unique=True)
    destination_period_id: int = Field(
        foreign_key="budget_period.id", nullable=False, unique=True
    )
    decision: str = Field(nullable=False, max_length=16)
    amount: Decimal = Field(max_digits=14, decimal_places=2, nullable=False)
    remaining_balance: Decimal = Field(max_digits=14, decimal_places=2, nullable=False)
    new_income: Decimal = Field(max_digits=14, decimal_places=2, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
