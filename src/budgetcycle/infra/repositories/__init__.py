"""Concrete repository implementations using SQLModel."""

from .period import SQLModelPeriodRepository

__all__ = ["SQLModelPeriodRepository"]
