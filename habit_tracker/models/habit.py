from typing import List, Optional
from datetime import datetime, date, timezone
from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Habit(SQLModel, table=True):
    """
    A tracked habit with its completion days and derived streaks.
    """
    __tablename__ = "habits"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)

    # Set once on creation, by the service from the configured zone's "today"
    start_date: date = Field(nullable=False)

    # ISO calendar days, sorted ascending, no duplicates
    completed_dates: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Derived from completed_dates, recomputed on every change
    streak_count: int = Field(default=0)
    longest_streak: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))

    def completion_days(self) -> List[date]:
        return [date.fromisoformat(d) for d in self.completed_dates or []]

    def touch(self) -> None:
        self.updated_at = utcnow()
