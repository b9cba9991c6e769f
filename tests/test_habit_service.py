import pytest
from datetime import date, timedelta

from habit_tracker.config import settings
from habit_tracker.db import Database
from habit_tracker.errors import HabitNotFound, InvalidInput
from habit_tracker.services.habit_service import HabitService
from habit_tracker.utils.dates import today_in_zone

TODAY = date(2024, 1, 30)


@pytest.mark.asyncio
async def test_create_habit_starts_empty(db_session):
    habit = await HabitService.create_habit(db_session, "  Reading ", "20 pages", start_date=TODAY)
    assert habit.id is not None
    assert habit.name == "Reading"
    assert habit.start_date == TODAY
    assert habit.completed_dates == []
    assert habit.streak_count == 0
    assert habit.longest_streak == 0


@pytest.mark.asyncio
async def test_create_habit_requires_name(db_session):
    with pytest.raises(InvalidInput):
        await HabitService.create_habit(db_session, "   ")


@pytest.mark.asyncio
async def test_toggle_adds_then_removes(db_session):
    habit = await HabitService.create_habit(db_session, "Reading", start_date=TODAY)

    result = await HabitService.toggle_completion(db_session, habit.id, "2024-01-30T08:00:00Z", today=TODAY)
    assert result.habit.completed_dates == ["2024-01-30"]
    assert result.habit.streak_count == 1
    assert result.habit.longest_streak == 1
    assert "Reading" in result.affirmation

    result = await HabitService.toggle_completion(db_session, habit.id, date(2024, 1, 30), today=TODAY)
    assert result.habit.completed_dates == []
    assert result.habit.streak_count == 0
    assert result.habit.longest_streak == 0
    assert result.affirmation is None


@pytest.mark.asyncio
async def test_toggle_defaults_to_today(db_session):
    habit = await HabitService.create_habit(db_session, "Walk", start_date=TODAY)
    result = await HabitService.toggle_completion(db_session, habit.id, today=TODAY)
    assert result.habit.completed_dates == [TODAY.isoformat()]


@pytest.mark.asyncio
async def test_bulk_complete_skips_existing_days_and_keeps_order(db_session):
    habit = await HabitService.create_habit(db_session, "Meditation", start_date=date(2024, 1, 1))
    await HabitService.toggle_completion(db_session, habit.id, "2024-01-15", today=TODAY)

    days = [(date(2024, 1, 1) + timedelta(days=i)).isoformat() for i in range(30)]
    result = await HabitService.complete_days(db_session, habit.id, list(reversed(days)) + ["2024-01-15"], today=TODAY)

    assert result.habit.completed_dates == days
    assert result.habit.streak_count == 30
    assert result.habit.longest_streak == 30
    assert "whole month" in result.affirmation


@pytest.mark.asyncio
async def test_streaks_follow_gaps(db_session):
    habit = await HabitService.create_habit(db_session, "Run", start_date=date(2024, 1, 1))
    result = await HabitService.complete_days(
        db_session, habit.id, ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05"], today=date(2024, 1, 5)
    )
    assert result.habit.streak_count == 1
    assert result.habit.longest_streak == 3


@pytest.mark.asyncio
async def test_future_date_is_rejected_and_habit_untouched(db_session):
    habit = await HabitService.create_habit(db_session, "Run", start_date=TODAY)
    await HabitService.toggle_completion(db_session, habit.id, TODAY, today=TODAY)

    with pytest.raises(InvalidInput):
        await HabitService.toggle_completion(db_session, habit.id, TODAY + timedelta(days=1), today=TODAY)

    habit = await HabitService.get_habit(db_session, habit.id)
    assert habit.completed_dates == [TODAY.isoformat()]
    assert habit.streak_count == 1


@pytest.mark.asyncio
async def test_bad_date_rejected(db_session):
    habit = await HabitService.create_habit(db_session, "Run", start_date=TODAY)
    with pytest.raises(InvalidInput):
        await HabitService.complete_days(db_session, habit.id, ["2024-01-01", "soon"], today=TODAY)


@pytest.mark.asyncio
async def test_missing_habit(db_session):
    with pytest.raises(HabitNotFound):
        await HabitService.toggle_completion(db_session, 999, today=TODAY)
    with pytest.raises(HabitNotFound):
        await HabitService.delete_habit(db_session, 999)


@pytest.mark.asyncio
async def test_update_keeps_start_date_and_delete_removes(db_session):
    habit = await HabitService.create_habit(db_session, "Read", start_date=date(2024, 1, 1))
    updated = await HabitService.update_habit(db_session, habit.id, "Read more", "30 pages")
    assert updated.name == "Read more"
    assert updated.description == "30 pages"
    assert updated.start_date == date(2024, 1, 1)

    await HabitService.delete_habit(db_session, habit.id)
    assert await HabitService.list_habits(db_session) == []


@pytest.mark.asyncio
async def test_report_for_month_and_all_time(db_session):
    habit = await HabitService.create_habit(db_session, "Stretch", start_date=date(2024, 2, 1))
    days = [date(2024, 2, d).isoformat() for d in range(1, 11)]
    await HabitService.complete_days(db_session, habit.id, days, today=date(2024, 2, 11))

    report = await HabitService.get_report(db_session, habit.id, 2024, 2, today=date(2024, 2, 11))
    assert report["monthly"]["completed"] == 10
    assert report["monthly"]["total"] == 29
    assert report["monthly"]["percentage"] == 34.5
    assert report["monthly"]["tier"] == "needs-improvement"
    assert report["overall"]["daysTracking"] == 10
    assert report["overall"]["completionRate"] == 100.0
    assert report["streaks"] == {"current": 10, "longest": 10}
    assert [d["completed"] for d in report["lastDays"]] == [True] * 6 + [False]

    all_time = await HabitService.get_report(db_session, habit.id, today=date(2024, 2, 11))
    assert all_time["monthly"] is None

    with pytest.raises(InvalidInput):
        await HabitService.get_report(db_session, habit.id, year=2024, today=date(2024, 2, 11))


@pytest.mark.asyncio
async def test_refresh_streaks_decays_current_streak(db_session):
    habit = await HabitService.create_habit(db_session, "Journal", start_date=date(2024, 1, 1))
    await HabitService.complete_days(db_session, habit.id, ["2024-01-04", "2024-01-05"], today=date(2024, 1, 5))

    changed = await HabitService.refresh_streaks(db_session, today=date(2024, 1, 9))
    assert changed == 1

    habit = await HabitService.get_habit(db_session, habit.id)
    assert habit.streak_count == 0
    assert habit.longest_streak == 2

    assert await HabitService.refresh_streaks(db_session, today=date(2024, 1, 9)) == 0


@pytest.mark.asyncio
async def test_timestamps_are_timezone_aware_and_persist(db_session):
    habit = await HabitService.create_habit(db_session, "Floss", start_date=TODAY)
    assert habit.created_at.tzinfo is not None
    created = habit.created_at

    result = await HabitService.toggle_completion(db_session, habit.id, TODAY, today=TODAY)
    assert result.habit.updated_at.tzinfo is not None
    assert result.habit.updated_at >= created

    await HabitService.complete_days(db_session, habit.id, ["2024-01-28", "2024-01-29"], today=TODAY)
    await db_session.commit()

    stored = await HabitService.get_habit(db_session, habit.id)
    assert stored.completed_dates == ["2024-01-28", "2024-01-29", "2024-01-30"]
    assert stored.streak_count == 3


@pytest.mark.asyncio
async def test_start_date_defaults_to_today_in_configured_zone(db_session):
    habit = await HabitService.create_habit(db_session, "Stretch")
    assert habit.start_date == today_in_zone(settings.TIMEZONE)


@pytest.mark.asyncio
async def test_refresh_streaks_rereads_dates_changed_by_another_session(tmp_path):
    # File-backed so each session gets its own connection
    database = Database(f"sqlite+aiosqlite:///{tmp_path}/habits.db", retries=1, backoff_seconds=0)
    await database.connect()
    try:
        async with database.session() as session:
            habit = await HabitService.create_habit(session, "Journal", start_date=date(2024, 1, 1))
            await HabitService.complete_days(session, habit.id, ["2024-01-04", "2024-01-05"], today=date(2024, 1, 5))
            habit_id = habit.id

        async with database.session() as refresher:
            # The refreshing session has already seen the old dates
            stale = await HabitService.list_habits(refresher)
            assert stale[0].completed_dates == ["2024-01-04", "2024-01-05"]

            async with database.session() as toggler:
                await HabitService.toggle_completion(toggler, habit_id, "2024-01-06", today=date(2024, 1, 6))

            assert await HabitService.refresh_streaks(refresher, today=date(2024, 1, 6)) == 0

        async with database.session() as session:
            stored = await HabitService.get_habit(session, habit_id)
            assert stored.completed_dates == ["2024-01-04", "2024-01-05", "2024-01-06"]
            assert stored.streak_count == 3
            assert stored.longest_streak == 3
    finally:
        await database.dispose()
