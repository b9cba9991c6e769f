from __future__ import annotations


class HabitTrackerError(Exception):
    """Base class for errors surfaced to API clients."""


class InvalidInput(HabitTrackerError, ValueError):
    """Raised when a caller hands over values the core cannot interpret."""


class HabitNotFound(HabitTrackerError, LookupError):
    def __init__(self, habit_id: int):
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class DatabaseUnavailable(HabitTrackerError):
    """Raised when the database cannot be reached after all retries."""
