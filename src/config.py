from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "price_router.db"


class AppSettings(BaseSettings):
    rpc_url: str | None = None
    rpc_timeout_seconds: float = 10.0
    rpc_retry_attempts: int = 5
    database_url: str = f"sqlite:///{DB_FILE}"
    oracle_config_path: Path = PROJECT_ROOT / "oracle.json"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()


__all__ = ["AppSettings", "config"]
