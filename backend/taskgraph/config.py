"""
Application settings for Taskgraph.

Values are read from the environment (prefix ``TASKGRAPH_``) and an optional
``.env`` file next to the backend directory.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKGRAPH_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///./taskgraph.db"
    debug: bool = False
    log_level: str | None = None
    log_json: bool = False

    # Authoritative per-task in-degree limit
    max_dependencies_per_task: int = Field(default=10, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
