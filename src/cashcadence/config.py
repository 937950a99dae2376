"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    """Read an integer environment variable, rejecting junk and out-of-range values."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if parsed < 0:
        raise ValueError(f"{name} must be >= 0, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "CashCadence"
    DB_FILENAME = "cashcadence.db"
    ENV_PREFIX = "CASHCADENCE_"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool(f"{self.ENV_PREFIX}DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv(f"{self.ENV_PREFIX}DATABASE_URL", self._build_sqlite_url())

        # Daily cron for the due-transaction scan (00:57 by default).
        self.DAILY_CHECK_HOUR = _env_int(f"{self.ENV_PREFIX}DAILY_CHECK_HOUR", 0)
        self.DAILY_CHECK_MINUTE = _env_int(f"{self.ENV_PREFIX}DAILY_CHECK_MINUTE", 57)
        if self.DAILY_CHECK_HOUR > 23:
            raise ValueError("CASHCADENCE_DAILY_CHECK_HOUR must be between 0 and 23")
        if self.DAILY_CHECK_MINUTE > 59:
            raise ValueError("CASHCADENCE_DAILY_CHECK_MINUTE must be between 0 and 59")

        # Per-job retry policy and worker pool
        self.JOB_ATTEMPTS = _env_int(f"{self.ENV_PREFIX}JOB_ATTEMPTS", 3, minimum=1)
        self.JOB_BACKOFF_SECONDS = _env_float(f"{self.ENV_PREFIX}JOB_BACKOFF_SECONDS", 5.0)
        self.JOB_WORKERS = _env_int(f"{self.ENV_PREFIX}JOB_WORKERS", 4, minimum=1)
        self.JOBS_RUN_ASYNC = True

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv(f"{self.ENV_PREFIX}DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            # Worker threads share the engine; SQLite needs the thread check lifted.
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for tests: in-memory database and inline job execution."""

    DEBUG = True
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"
        self.JOB_BACKOFF_SECONDS = 0.0
        self.JOBS_RUN_ASYNC = False

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        # One shared connection so every session sees the same in-memory database.
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
