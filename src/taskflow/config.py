# src/taskflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"

NOTIFICATION_POLICIES = ("ask", "granted", "denied")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Surfaces ----
    console_enabled: bool
    seed_demo_data: bool

    # ---- Reminders ----
    reminder_interval_seconds: float
    notifications: str  # "ask" | "granted" | "denied"

    # ---- AI assistant (OpenAI-compatible) ----
    openai_api_key: Optional[str]
    openai_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    log_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskflow")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        seed_demo_data = _env_bool(_k("SEED_DEMO_DATA"), True)

        # Reminders are set with minute granularity; never poll slower than that.
        reminder_interval_seconds = min(60.0, max(0.5, _env_float(_k("REMINDER_INTERVAL_SECONDS"), 30.0)))

        notifications = _env(_k("NOTIFICATIONS"), "ask").strip().lower()
        if notifications not in NOTIFICATION_POLICIES:
            notifications = "ask"

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o-mini"])

        extra_headers = {"X-Title": _env(_k("APP_TITLE"), app_name)}

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "taskflow.sqlite3")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            seed_demo_data=seed_demo_data,
            reminder_interval_seconds=reminder_interval_seconds,
            notifications=notifications,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            data_dir=data_dir,
            db_path=db_path,
            log_dir=log_dir,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings.from_env()
