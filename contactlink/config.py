"""
Configuration.

Settings come from the environment, optionally seeded from a `.env` file in
the working directory:

    CONTACTLINK_STORE_BACKEND=json        # json | sql
    CONTACTLINK_DATA_DIR=data
    CONTACTLINK_DATABASE_URL=sqlite:///data/contactlink.db
    CONTACTLINK_LOG_LEVEL=INFO
    CONTACTLINK_LOG_DIR=logs
    CONTACTLINK_REPOINT_RETRIES=2
    CONTACTLINK_RETRY_DELAY=0.1
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ValidationError
from .repositories.base import Stores

BACKENDS = ("json", "sql")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env(env_path: Optional[Path] = None) -> bool:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)


@dataclass(frozen=True)
class Settings:
    store_backend: str = "json"
    data_dir: Path = Path("data")
    database_url: Optional[str] = None
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    repoint_retries: int = 2
    retry_delay: float = 0.1

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.data_dir / 'contactlink.db'}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        backend = env.get("CONTACTLINK_STORE_BACKEND", "json").strip().lower()
        if backend not in BACKENDS:
            raise ValidationError(
                f"CONTACTLINK_STORE_BACKEND must be one of {', '.join(BACKENDS)}",
                details={"value": backend},
            )
        log_level = env.get("CONTACTLINK_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValidationError("Invalid CONTACTLINK_LOG_LEVEL", details={"value": log_level})

        log_dir = env.get("CONTACTLINK_LOG_DIR")
        return cls(
            store_backend=backend,
            data_dir=Path(env.get("CONTACTLINK_DATA_DIR", "data")),
            database_url=env.get("CONTACTLINK_DATABASE_URL") or None,
            log_level=log_level,
            log_dir=Path(log_dir) if log_dir else None,
            repoint_retries=_int(env, "CONTACTLINK_REPOINT_RETRIES", 2),
            retry_delay=_float(env, "CONTACTLINK_RETRY_DELAY", 0.1),
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an integer", details={"value": raw})
    if value < 0:
        raise ValidationError(f"{key} must not be negative", details={"value": raw})
    return value


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"{key} must be a number", details={"value": raw})
    if value < 0:
        raise ValidationError(f"{key} must not be negative", details={"value": raw})
    return value


def build_stores(settings: Settings) -> Stores:
    """Pick the storage backend once, at start-up."""
    if settings.store_backend == "sql":
        from .repositories.sql_store import sql_stores

        return sql_stores(settings.resolved_database_url)
    from .repositories.json_store import json_stores

    return json_stores(settings.data_dir)
