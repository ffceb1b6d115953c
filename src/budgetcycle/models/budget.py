"""Budget lineage and period tables."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import Index, text
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Budget(SQLModel, table=True):
    """The stable budget a user thinks of as "my budget", spanning many periods."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=64, index=True)
    currency: str = Field(default="PKR", max_length=3, description="ISO-4217 code, display only")
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    periods: list["BudgetPeriod"] = Relationship(
        back_populates="budget",
        sa_relationship=relationship("BudgetPeriod", back_populates="budget"),
    )


class BudgetPeriod(SQLModel, table=True):
    """One dated instance of a budget with its own income baseline.

    A period is active while ``archived_at`` is null. The partial unique index
    keeps storage from ever holding two active periods for one budget.
    """

    __tablename__: ClassVar[str] = "budget_period"
    __table_args__ = (
        Index(
            "uq_budget_period_active",
            "budget_id",
            unique=True,
            sqlite_where=text("archived_at IS NULL"),
            postgresql_where=text("archived_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    month_label: str = Field(nullable=False, max_length=7, description="YYYY-MM")
    income: Decimal = Field(max_digits=14, decimal_places=2, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    archived_at: Optional[datetime] = Field(default=None, index=True)

    budget: "Budget" = Relationship(
        back_populates="periods",
        sa_relationship=relationship("Budget", back_populates="periods"),
    )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class Allocation(SQLModel, table=True):
    """Amount planned for a category within a single period."""

    __tablename__: ClassVar[str] = "allocation"

    id: Optional[int] = Field(default=None, primary_key=True)
    period_id: int = Field(foreign_key="budget_period.id", nullable=False, index=True)
    category_id: int = Field(foreign_key="category.id", nullable=False)
    amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2, nullable=False)
