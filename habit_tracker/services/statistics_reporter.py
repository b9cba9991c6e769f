from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, List, NamedTuple, Optional

from ..config import settings
from ..errors import InvalidInput
from ..utils.dates import days_in_month, normalize_dates, to_calendar_day, today_in_zone


class MonthlyStats(NamedTuple):
    completed: int
    total: int
    percentage: float


class OverallStats(NamedTuple):
    days_tracking: int
    completed_count: int
    completion_rate: float


class DailyActivity(NamedTuple):
    day: date
    completed: bool


@dataclass(frozen=True)
class Milestone:
    days: int
    template: str

    def render(self, habit_name: str) -> str:
        return self.template.format(habit_name=habit_name)


MILESTONES = (
    Milestone(30, "🌟 Incredible achievement! You've maintained {habit_name} for a whole month! This is now part of your lifestyle!"),
    Milestone(20, "🔥 Outstanding! 20 days of {habit_name}! You're building a powerful habit!"),
    Milestone(15, "⭐ Amazing consistency with {habit_name} for 15 days! Keep this momentum going!"),
    Milestone(5, "🎯 Great job! 5 days of {habit_name} shows your commitment to growth!"),
    Milestone(1, "🌱 Excellent start with {habit_name}! The journey of a thousand miles begins with a single step!"),
)

# (lower bound, tier), checked top-down
COMPLETION_TIERS = (
    (80.0, "excellent"),
    (60.0, "good"),
    (40.0, "fair"),
)
DEFAULT_TIER = "needs-improvement"


class StatisticsReporter:
    """
    Read-only completion statistics for a single habit.
    """

    @staticmethod
    def monthly_stats(dates: Iterable[Any], year: int, month: int) -> MonthlyStats:
        """Completed days in the given month against the number of days in it."""
        total = days_in_month(year, month)
        completed = sum(1 for d in normalize_dates(dates) if d.year == year and d.month == month)
        return MonthlyStats(
            completed=completed,
            total=total,
            percentage=round(completed / total * 100, 1),
        )

    @staticmethod
    def overall_stats(dates: Iterable[Any], start_date: Any, as_of: Optional[Any] = None) -> OverallStats:
        """
        All-time completion rate since the habit started.

        A habit started today (or in the future) has a rate of 0 whatever its
        completion count.
        """
        reference = to_calendar_day(as_of) if as_of is not None else today_in_zone(settings.TIMEZONE)
        days_tracking = (reference - to_calendar_day(start_date)).days
        completed_count = len(normalize_dates(dates))

        if days_tracking <= 0:
            rate = 0.0
        else:
            rate = round(completed_count / days_tracking * 100, 1)
        return OverallStats(days_tracking=days_tracking, completed_count=completed_count, completion_rate=rate)

    @staticmethod
    def milestone_affirmation(streak_count: int, habit_name: str) -> Optional[str]:
        for milestone in MILESTONES:
            if streak_count == milestone.days:
                return milestone.render(habit_name)
        return None

    @staticmethod
    def completion_tier(percentage: float) -> str:
        for lower, tier in COMPLETION_TIERS:
            if percentage >= lower:
                return tier
        return DEFAULT_TIER

    @staticmethod
    def daily_activity(dates: Iterable[Any], as_of: Optional[Any] = None, days: int = 7) -> List[DailyActivity]:
        """The last `days` calendar days ending at as_of, oldest first."""
        if days < 1:
            raise InvalidInput(f"days must be at least 1, got {days}")
        reference = to_calendar_day(as_of) if as_of is not None else today_in_zone(settings.TIMEZONE)
        completed = set(normalize_dates(dates))
        window = [reference - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        return [DailyActivity(day=day, completed=day in completed) for day in window]

    @staticmethod
    def is_completed_on(dates: Iterable[Any], day: Any) -> bool:
        return to_calendar_day(day) in set(normalize_dates(dates))
