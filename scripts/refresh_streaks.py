import asyncio
from loguru import logger

from habit_tracker.db import Database
from habit_tracker.services.habit_service import HabitService

async def main():
    database = Database.from_settings()
    await database.connect()
    try:
        async with database.session() as session:
            changed = await HabitService.refresh_streaks(session)
        logger.info("Done, {} habit(s) updated", changed)
    finally:
        await database.dispose()

if __name__ == "__main__":
    asyncio.run(main())
