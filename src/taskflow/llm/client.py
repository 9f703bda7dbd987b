# src/taskflow/llm/client.py

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx
import openai
from openai import OpenAI

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        return default


def _timeouts_from_env() -> dict[str, float]:
    """
    Timeouts are configurable via env so a slow model cannot hang the console.

    Defaults:
    - connect timeout: 5s
    - read timeout: 25s (no data from server)
    - first token timeout: 20s (no content tokens)
    """
    first_token = _env_float("TASKFLOW_LLM_FIRST_TOKEN_TIMEOUT_SECONDS", 20.0)
    read_timeout = _env_float("TASKFLOW_LLM_READ_TIMEOUT_SECONDS", 25.0)
    connect_timeout = _env_float("TASKFLOW_LLM_CONNECT_TIMEOUT_SECONDS", 5.0)

    # keep read >= first_token as a sane baseline
    read_timeout = max(read_timeout, first_token)

    return {
        "first_token": first_token,
        "read": read_timeout,
        "connect": connect_timeout,
    }


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError, httpx.TimeoutException))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "AI assistant is not configured (missing API key). Set TASKFLOW_OPENAI_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "AI assistant is not configured (no models). Set TASKFLOW_LLM_MODELS in .env."
    return msg


class OpenAILLMClient:
    """
    OpenAI-compatible streaming chat client with model fallback.

    - Tries models in the configured order.
    - If a model produces no content token within the first-token timeout, tries the next one.
    - 404 (model not available) -> remember it for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()

        api_key = settings.openai_api_key
        if not api_key or not api_key.strip():
            raise RuntimeError("LLM API key is not set. Set TASKFLOW_OPENAI_API_KEY in your .env.")

        self._models: List[str] = [m.strip() for m in settings.llm_models if m and m.strip()]
        if not self._models:
            raise RuntimeError("LLM model list is empty. Set TASKFLOW_LLM_MODELS in your .env.")

        self._headers: Dict[str, str] = dict(settings.extra_headers or {})
        self._timeouts = _timeouts_from_env()
        self._timeout = httpx.Timeout(
            connect=self._timeouts["connect"],
            read=self._timeouts["read"],
            write=10.0,
            pool=self._timeouts["connect"],
        )
        # Automatic retries off: falling through to the next model is faster.
        self._client = OpenAI(
            base_url=settings.openai_base_url or None,
            api_key=api_key,
            timeout=self._timeout,
            max_retries=0,
        )

    def _create_stream(self, model: str, messages: list[dict[str, str]]) -> Any:
        return self._client.chat.completions.create(
            model=model,
            stream=True,
            extra_headers=self._headers or None,
            messages=messages,  # type: ignore[arg-type]
            timeout=self._timeout,
        )

    def stream_chat(self, messages: List[Dict[str, str]], system_prompt: str) -> Iterable[str]:
        first_token_timeout = float(self._timeouts["first_token"])
        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s (first_token_timeout=%.1fs)", model, first_token_timeout)
            t0 = time.monotonic()
            deadline = t0 + first_token_timeout

            stream = None
            used_any = False

            try:
                stream = self._create_stream(
                    model,
                    [{"role": "system", "content": system_prompt}, *messages],
                )

                for chunk in stream:
                    if not used_any and time.monotonic() > deadline:
                        last_error = TimeoutError(f"First token timeout on model: {model}")
                        logger.info("LLM: first token timeout on model=%s -> trying next", model)
                        break

                    content = chunk.choices[0].delta.content if chunk.choices else None
                    if content:
                        if not used_any:
                            logger.info("LLM: first token from model=%s (%.2fs)", model, time.monotonic() - t0)
                        used_any = True
                        yield content

                if used_any:
                    logger.debug("LLM: completed with model=%s", model)
                    return

                if last_error is None:
                    last_error = RuntimeError(f"Model returned no content: {model}")

            except openai.OpenAIError as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (TASKFLOW_OPENAI_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0  # 1 hour
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            finally:
                if stream is not None:
                    stream.close()

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")


def complete_text(llm: Any, messages: List[Dict[str, str]], system_prompt: str) -> str:
    """Collect a streamed reply into one string."""
    return "".join(piece for piece in llm.stream_chat(messages, system_prompt) if piece).strip()
