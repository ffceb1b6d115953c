"""Spending categories shared by every period of a budget."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Category(SQLModel, table=True):
    """Category referenced by allocations and expenses."""

    __tablename__: ClassVar[str] = "category"
    __table_args__ = (UniqueConstraint("budget_id", "slug", name="uq_category_budget_slug"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=64)
    slug: str = Field(nullable=False, max_length=64, index=True)
