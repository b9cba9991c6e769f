from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from loguru import logger

from ..config import settings
from ..errors import HabitNotFound, InvalidInput
from ..models.habit import Habit
from ..utils.dates import normalize_dates, to_calendar_day, to_iso, today_in_zone
from .statistics_reporter import StatisticsReporter
from .streak_calculator import StreakCalculator


@dataclass
class CompletionResult:
    habit: Habit
    affirmation: Optional[str] = None


class HabitService:
    """
    CRUD and completion tracking for habits.
    """

    @staticmethod
    async def create_habit(
        session: AsyncSession,
        name: str,
        description: Optional[str] = None,
        start_date: Optional[Any] = None,
    ) -> Habit:
        """Create a new habit with no completions."""
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Habit name is required")

        habit = Habit(
            name=name,
            description=description,
            start_date=to_calendar_day(start_date) if start_date is not None else today_in_zone(settings.TIMEZONE),
            completed_dates=[],
            streak_count=0,
            longest_streak=0,
        )
        session.add(habit)
        await session.flush()
        logger.info("Created habit {} ({})", habit.id, habit.name)
        return habit

    @staticmethod
    async def list_habits(session: AsyncSession) -> List[Habit]:
        result = await session.execute(select(Habit).order_by(Habit.created_at, Habit.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_habit(session: AsyncSession, habit_id: int, for_update: bool = False) -> Habit:
        habit = await session.get(Habit, habit_id, with_for_update=for_update or None)
        if not habit:
            raise HabitNotFound(habit_id)
        return habit

    @staticmethod
    async def update_habit(
        session: AsyncSession,
        habit_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> Habit:
        """Rename or re-describe a habit. The start date never changes."""
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Habit name is required")

        habit = await HabitService.get_habit(session, habit_id)
        habit.name = name
        habit.description = description
        habit.touch()
        session.add(habit)
        await session.flush()
        logger.info("Updated habit {}", habit_id)
        return habit

    @staticmethod
    async def delete_habit(session: AsyncSession, habit_id: int) -> Habit:
        habit = await HabitService.get_habit(session, habit_id)
        await session.delete(habit)
        await session.flush()
        logger.info("Deleted habit {}", habit_id)
        return habit

    @staticmethod
    async def toggle_completion(
        session: AsyncSession,
        habit_id: int,
        day: Optional[Any] = None,
        today: Optional[date] = None,
    ) -> CompletionResult:
        """
        Mark a day done, or undo it if it was already marked.
        Day defaults to today.
        """
        today = today or today_in_zone(settings.TIMEZONE)
        target = to_calendar_day(day) if day is not None else today

        habit = await HabitService.get_habit(session, habit_id, for_update=True)
        days = set(habit.completion_days())
        if target in days:
            days.remove(target)
            logger.info("Unmarked {} for habit {}", target, habit_id)
        else:
            days.add(target)
            logger.info("Marked {} for habit {}", target, habit_id)

        return await HabitService._save_completions(session, habit, days, today)

    @staticmethod
    async def complete_days(
        session: AsyncSession,
        habit_id: int,
        days: Iterable[Any],
        today: Optional[date] = None,
    ) -> CompletionResult:
        """Mark several days done at once. Days already marked are left alone."""
        today = today or today_in_zone(settings.TIMEZONE)
        new_days = normalize_dates(days)

        habit = await HabitService.get_habit(session, habit_id, for_update=True)
        existing = set(habit.completion_days())
        added = [d for d in new_days if d not in existing]
        logger.info("Bulk-marked {} new day(s) for habit {}", len(added), habit_id)

        return await HabitService._save_completions(session, habit, existing.union(added), today)

    @staticmethod
    async def _save_completions(
        session: AsyncSession,
        habit: Habit,
        days: Iterable[date],
        today: date,
    ) -> CompletionResult:
        ordered = sorted(days)
        # Computed before assignment so a rejected date leaves the habit untouched
        streaks = StreakCalculator.compute_streaks(ordered, as_of=today)

        habit.completed_dates = [to_iso(d) for d in ordered]
        habit.streak_count = streaks.current
        habit.longest_streak = streaks.longest
        habit.touch()
        session.add(habit)
        await session.flush()

        affirmation = StatisticsReporter.milestone_affirmation(habit.streak_count, habit.name)
        if affirmation:
            logger.info("Habit {} reached a {}-day milestone", habit.id, habit.streak_count)
        return CompletionResult(habit=habit, affirmation=affirmation)

    @staticmethod
    async def get_report(
        session: AsyncSession,
        habit_id: int,
        year: Optional[int] = None,
        month: Optional[int] = None,
        today: Optional[date] = None,
    ) -> dict:
        """
        Statistics for one habit: a specific month when year and month are
        given, all time otherwise.
        """
        if (year is None) != (month is None):
            raise InvalidInput("year and month must be given together")

        today = today or today_in_zone(settings.TIMEZONE)
        habit = await HabitService.get_habit(session, habit_id)
        days = habit.completion_days()

        monthly = None
        if year is not None:
            stats = StatisticsReporter.monthly_stats(days, year, month)
            monthly = {
                "year": year,
                "month": month,
                "completed": stats.completed,
                "total": stats.total,
                "percentage": stats.percentage,
                "tier": StatisticsReporter.completion_tier(stats.percentage),
            }

        overall = StatisticsReporter.overall_stats(days, habit.start_date, as_of=today)
        streaks = StreakCalculator.compute_streaks(days, as_of=today)
        activity = StatisticsReporter.daily_activity(days, as_of=today)

        return {
            "habitId": habit.id,
            "name": habit.name,
            "monthly": monthly,
            "overall": {
                "daysTracking": overall.days_tracking,
                "completedCount": overall.completed_count,
                "completionRate": overall.completion_rate,
                "tier": StatisticsReporter.completion_tier(overall.completion_rate),
            },
            "streaks": {"current": streaks.current, "longest": streaks.longest},
            "lastDays": [{"date": to_iso(a.day), "completed": a.completed} for a in activity],
        }

    @staticmethod
    async def refresh_streaks(session: AsyncSession, today: Optional[date] = None) -> int:
        """
        Recompute stored streaks of every habit against today.
        Returns how many habits changed.
        """
        today = today or today_in_zone(settings.TIMEZONE)
        changed = 0
        # Lock and re-read the rows so a toggle committed meanwhile is not overwritten with stale streaks
        result = await session.execute(
            select(Habit)
            .order_by(Habit.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        for habit in result.scalars().all():
            try:
                streaks = StreakCalculator.compute_streaks(habit.completion_days(), as_of=today)
            except InvalidInput as e:
                logger.warning("Skipping habit {}: {}", habit.id, e)
                continue
            if (habit.streak_count, habit.longest_streak) != (streaks.current, streaks.longest):
                habit.streak_count = streaks.current
                habit.longest_streak = streaks.longest
                habit.touch()
                session.add(habit)
                changed += 1
        await session.flush()
        logger.info("Refreshed streaks: {} habit(s) updated", changed)
        return changed
