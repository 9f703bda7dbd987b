# src/taskflow/connectors/console_connector.py

from __future__ import annotations

import logging
import shlex
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _prompt(state: AppState) -> str:
    user = state.session.user if state.session else None
    return f">>> {user.name if user else 'guest'}: "


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (session=%s).", state.session.user_id if state.session else None)
    _print_ts(f"[{state.settings.app_name}] Use /help for commands, /login to sign in, /exit to quit.")
    _print_ts("Plain text (when signed in) is sent to the AI assistant as a task request.\n")

    while True:
        try:
            user_input = input(_prompt(state)).strip()
            _rewrite_prev_line(f"[{_ts_local()}] {_prompt(state)}{user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Free text goes to the assistant as a task request.
        line = user_input if user_input.startswith("/") else f"/ask {shlex.quote(user_input)}"

        try:
            response = command_registry.handle(state, line)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            print(f"[{_ts_local()}] {response}")

    logger.info("Console connector finished.")
