from __future__ import annotations
from datetime import date
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.habit import Habit
from ..services.habit_service import HabitService
from .dependencies import get_session, get_today
from .schemas import CompletionRequest, HabitCreate, HabitUpdate

router = APIRouter(prefix="/api/habits", tags=["habits"])


def habit_payload(habit: Habit) -> Dict[str, Any]:
    """Habit in the shape the calendar frontend reads."""
    return {
        "_id": habit.id,
        "name": habit.name,
        "description": habit.description,
        "startDate": habit.start_date.isoformat(),
        "completedDates": list(habit.completed_dates or []),
        "streakCount": habit.streak_count,
        "longestStreak": habit.longest_streak,
    }


@router.get("")
async def list_habits(session: AsyncSession = Depends(get_session)):
    habits = await HabitService.list_habits(session)
    return {"habits": [habit_payload(h) for h in habits]}


@router.post("", status_code=201)
async def create_habit(
    req: HabitCreate,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
):
    habit = await HabitService.create_habit(session, req.name, req.description, start_date=today)
    await session.commit()
    return {"message": "Habit created", "habit": habit_payload(habit)}


@router.put("/{habit_id}")
async def update_habit(habit_id: int, req: HabitUpdate, session: AsyncSession = Depends(get_session)):
    habit = await HabitService.update_habit(session, habit_id, req.name, req.description)
    await session.commit()
    return {"message": "Habit updated", "habit": habit_payload(habit)}


@router.delete("/{habit_id}")
async def delete_habit(habit_id: int, session: AsyncSession = Depends(get_session)):
    habit = await HabitService.delete_habit(session, habit_id)
    payload = habit_payload(habit)
    await session.commit()
    return {"message": "Habit deleted", "habit": payload}


@router.post("/{habit_id}/complete")
async def complete_habit(
    habit_id: int,
    req: Optional[CompletionRequest] = None,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
):
    req = req or CompletionRequest()
    if req.dates is not None:
        result = await HabitService.complete_days(session, habit_id, req.dates, today=today)
    else:
        result = await HabitService.toggle_completion(session, habit_id, req.date, today=today)
    await session.commit()
    return {
        "message": "Habit marked as complete",
        "habit": habit_payload(result.habit),
        "affirmation": result.affirmation,
    }


@router.get("/{habit_id}/stats")
async def habit_stats(
    habit_id: int,
    year: Optional[int] = None,
    month: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
):
    return await HabitService.get_report(session, habit_id, year=year, month=month, today=today)
