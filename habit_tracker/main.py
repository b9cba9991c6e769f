from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import settings
from .db import Database
from .errors import DatabaseUnavailable, HabitNotFound, InvalidInput
from .api.habits import router as habits_router


def create_app(database: Optional[Database] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # --- startup ---
        logger.remove()
        logger.add(lambda msg: print(msg, end=""), level=settings.LOG_LEVEL)

        app.state.database = database or Database.from_settings()
        await app.state.database.connect()
        logger.info("Habit tracker started ({})", settings.ENV)

        yield

        # --- shutdown ---
        await app.state.database.dispose()
        logger.info("Habit tracker shut down")

    app = FastAPI(title="Habit Tracker", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        logger.warning("Rejected {} {}: {}", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        logger.warning("Rejected {} {}: {}", request.method, request.url.path, problems)
        return JSONResponse({"error": f"Invalid request: {problems}"}, status_code=400)

    @app.exception_handler(HabitNotFound)
    async def not_found_handler(request: Request, exc: HabitNotFound):
        return JSONResponse({"error": "Habit not found"}, status_code=404)

    @app.exception_handler(DatabaseUnavailable)
    async def database_unavailable_handler(request: Request, exc: DatabaseUnavailable):
        logger.error("Database unavailable during {} {}: {}", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=503)

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(habits_router)
    return app


app = create_app()
