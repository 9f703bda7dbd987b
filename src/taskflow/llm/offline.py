# src/taskflow/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Task suggestion prompts -> returns an all-empty suggestion object
    - Anything else -> a fixed note explaining how to enable the assistant
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()

        if "task assistant" in sp and "json" in sp:
            yield '{"companyId": "", "assigneeId": "", "deadline": "", "priority": ""}'
            return

        yield (
            "Offline mode: no AI provider is configured.\n"
            "Set TASKFLOW_OPENAI_API_KEY (and TASKFLOW_LLM_MODELS) to enable suggestions and insights."
        )
