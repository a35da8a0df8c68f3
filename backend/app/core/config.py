from functools import lru_cache
import json
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[2]
BACKEND_ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
DEFAULT_PERIODS = ["8:45-9:45", "9:45-10:45", "11:00-12:00", "12:00-1:00", "2:00-3:00"]


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Slotwise API"
    api_prefix: str = "/api"
    environment: str = "development"
    log_level: str | None = None

    database_url: str = f"sqlite:///{BACKEND_DIR / 'slotwise.db'}"
    auto_create_schema: bool = True

    # Tokens are issued by the identity provider; this service only verifies them.
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    timetable_days: Annotated[list[str], NoDecode] = DEFAULT_DAYS
    timetable_periods: Annotated[list[str], NoDecode] = DEFAULT_PERIODS
    timetable_strict_commit: bool = False

    subjects_fallback_path: Path | None = None

    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:19006",
        "http://127.0.0.1:19006",
    ]

    @field_validator("cors_origins", "timetable_days", "timetable_periods", mode="before")
    @classmethod
    def split_lists(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)

    @field_validator("timetable_days", "timetable_periods")
    @classmethod
    def require_distinct_values(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one value is required")
        if len(set(value)) != len(value):
            raise ValueError("Values must be unique")
        return value

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return (value or "development").strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
