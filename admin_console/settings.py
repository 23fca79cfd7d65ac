from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Console settings.

    Notes:
    - Defaults point at the repo-local `database/` and `config/` directories.
    - Every field can be overridden with a `CONSOLE_`-prefixed env var.
    """

    model_config = SettingsConfigDict(env_prefix="CONSOLE_", extra="ignore")

    database_dir: str | None = None
    screens_config_path: str | None = None
    log_level: str = "INFO"

    api_base_url: str = "http://localhost:8000"
    request_timeout: float | None = None
    default_page_size: int = 10

    seed_demo_data: bool = True

    def resolved_database_dir(self) -> Path:
        if self.database_dir:
            return Path(self.database_dir)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "database"

    def resolved_screens_config_path(self) -> Path:
        if self.screens_config_path:
            return Path(self.screens_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "screens.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
