from pydantic import BaseModel
from typing import Any, Optional

class HabitCreate(BaseModel):
    name: str
    description: Optional[str] = None

class HabitUpdate(BaseModel):
    name: str
    description: Optional[str] = None

class CompletionRequest(BaseModel):
    # Single day to toggle (defaults to today) or several days to mark done.
    # Left untyped so date parsing, and its errors, stay in utils.dates
    date: Optional[Any] = None
    dates: Optional[Any] = None
