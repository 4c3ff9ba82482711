from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./dojo.db"

    # Backend
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    APP_DEBUG: bool = True
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)
    LOG_SQL: bool = False   # Enable SQLAlchemy query logging

    # Content
    CONTENT_DIR: Path = REPO_ROOT / "data" / "content"

    # Practice sessions
    GAUNTLET_QUESTION_COUNT: int = 20
    BLITZ_DURATION_SECONDS: float = 60.0
    BLITZ_POLL_INTERVAL_MS: int = 250  # Advertised to clients for deadline polling
    PICK_OPTION_COUNT: int = 4
    QUESTION_HISTORY_SIZE: int = 5
    SESSION_RETENTION_SECONDS: float = 1800.0  # Sessions with no events for this long are forgotten

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
