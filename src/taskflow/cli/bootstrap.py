# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/workspace/LLM/notifications),
- restores the persisted session if it is still valid.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import LLMClient
from ..core.seed import EMPTY_SEED, demo_seed
from ..core.state import AppState, Workspace
from ..identity.accounts import restore_session
from ..llm.client import OpenAILLMClient
from ..llm.offline import OfflineLLMClient
from ..notifications.center import ConsoleNotificationCenter
from ..storage.kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.log_dir.mkdir(parents=True, exist_ok=True)


def create_llm_client(settings: Settings) -> LLMClient:
    try:
        return OpenAILLMClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.info("AI assistant offline: %s", e)
        return OfflineLLMClient()


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = SqliteKeyValueStore(settings.db_path)
    workspace = Workspace.load(store, seed=demo_seed() if settings.seed_demo_data else EMPTY_SEED)

    state = AppState(
        settings=settings,
        workspace=workspace,
        llm=create_llm_client(settings),
        notifications=ConsoleNotificationCenter(settings.notifications),
    )
    state.session = restore_session(workspace)
    if state.session is not None:
        logger.info("Restored session for employee id=%s", state.session.user_id)
    return state
