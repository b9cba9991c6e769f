from __future__ import annotations
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterable, List, NamedTuple, Optional

from ..config import settings
from ..errors import InvalidInput
from ..utils.dates import normalize_dates, to_calendar_day, today_in_zone


class StreakMode(str, Enum):
    CURRENT = "current"
    LONGEST = "longest"


class StreakSummary(NamedTuple):
    current: int
    longest: int


class StreakCalculator:
    """
    Consecutive-day streaks over a set of completion dates.

    Input dates are normalized to calendar days and de-duplicated first, so a
    day logged twice neither extends nor breaks a run.
    """

    @staticmethod
    def compute_streak(dates: Iterable[Any], mode: StreakMode, as_of: Optional[Any] = None) -> int:
        try:
            mode = StreakMode(mode)
        except ValueError:
            raise InvalidInput(f"Unknown streak mode: {mode!r}") from None

        days = normalize_dates(dates)
        if not days:
            return 0

        if mode is StreakMode.LONGEST:
            return StreakCalculator._longest_run(days)

        reference = to_calendar_day(as_of) if as_of is not None else today_in_zone(settings.TIMEZONE)
        return StreakCalculator._current_run(days, reference)

    @staticmethod
    def compute_streaks(dates: Iterable[Any], as_of: Optional[Any] = None) -> StreakSummary:
        """Return (current, longest), normalizing the dates once."""
        days = normalize_dates(dates)
        if not days:
            return StreakSummary(0, 0)
        reference = to_calendar_day(as_of) if as_of is not None else today_in_zone(settings.TIMEZONE)
        return StreakSummary(
            current=StreakCalculator._current_run(days, reference),
            longest=StreakCalculator._longest_run(days),
        )

    @staticmethod
    def _current_run(days: List[date], as_of: date) -> int:
        """Length of the run ending at the most recent day, 0 if older than yesterday."""
        most_recent = days[-1]
        if most_recent > as_of:
            raise InvalidInput(
                f"Completion date {most_recent.isoformat()} is after {as_of.isoformat()}"
            )
        if (as_of - most_recent).days > 1:
            return 0

        streak = 1
        expected = most_recent - timedelta(days=1)
        for day in reversed(days[:-1]):
            if day != expected:
                break
            streak += 1
            expected -= timedelta(days=1)
        return streak

    @staticmethod
    def _longest_run(days: List[date]) -> int:
        longest = run = 1
        for prev, day in zip(days, days[1:]):
            if (day - prev).days == 1:
                run += 1
                longest = max(longest, run)
            else:
                run = 1
        return longest
