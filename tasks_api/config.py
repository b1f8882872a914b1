"""Settings loaded from environment variables (+ optional .env).

All variables use the ``TASKS_`` prefix, e.g. ``TASKS_DATABASE_PATH``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKS"
STORE_BACKENDS = ("sqlite", "memory")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str = "tasks-api"
    log_level: str = "INFO"
    log_file: str = ""
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    # ---- Storage ----
    store: str = "sqlite"
    database_path: Path = Path("data/tasks.sqlite3")

    # ---- HTTP ----
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    host: str = "127.0.0.1"
    port: int = 8000

    @staticmethod
    def from_env(dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv(override=False)

        defaults = Settings()
        store = _env(_k("STORE"), defaults.store).strip().lower()
        if store not in STORE_BACKENDS:
            raise ValueError(f"{_k('STORE')} must be one of {', '.join(STORE_BACKENDS)}, got {store!r}")

        database_path = _env(_k("DATABASE_PATH"))
        return Settings(
            app_name=_env(_k("APP_NAME"), defaults.app_name),
            log_level=_env(_k("LOG_LEVEL"), defaults.log_level),
            log_file=_env(_k("LOG_FILE"), defaults.log_file),
            log_max_bytes=_env_int(_k("LOG_MAX_BYTES"), defaults.log_max_bytes),
            log_backup_count=_env_int(_k("LOG_BACKUP_COUNT"), defaults.log_backup_count),
            store=store,
            database_path=Path(database_path).expanduser() if database_path.strip() else defaults.database_path,
            cors_origins=_env_list(_k("CORS_ORIGINS"), defaults.cors_origins),
            host=_env(_k("HOST"), defaults.host),
            port=_env_int(_k("PORT"), defaults.port),
        )
