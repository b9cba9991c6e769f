from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = Field(..., description="SQLAlchemy async URL, e.g., postgresql+asyncpg://... or sqlite+aiosqlite:///./habits.db")

    # Connection retries (exponential backoff starting at DB_CONNECT_BACKOFF_SECONDS)
    DB_CONNECT_RETRIES: int = 5
    DB_CONNECT_BACKOFF_SECONDS: float = 1.0

    # IANA zone that defines "today" for streaks and reports
    TIMEZONE: str = "UTC"

    # Comma-separated origins, "*" allows any
    CORS_ALLOW_ORIGINS: str = "*"

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ALLOW_ORIGINS:
            return []
        return [x.strip() for x in self.CORS_ALLOW_ORIGINS.split(",") if x.strip()]

settings = Settings()
