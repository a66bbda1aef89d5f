"""LLM provider adapter layer."""

import httpx

from gitty.models.provider import ProviderKind
from gitty.services.llm.anything_llm import AnythingLLMAdapter
from gitty.services.llm.base import ProviderAdapter
from gitty.services.llm.chat_strategy import ChatStrategy, render_transcript
from gitty.services.llm.custom import CustomAdapter
from gitty.services.llm.github_copilot import GitHubCopilotAdapter
from gitty.services.llm.lm_studio import LMStudioAdapter
from gitty.services.llm.microsoft_copilot import MicrosoftCopilotAdapter
from gitty.services.llm.ollama import OllamaAdapter

_ADAPTERS: dict[ProviderKind, type[ProviderAdapter]] = {
    ProviderKind.GITHUB_COPILOT: GitHubCopilotAdapter,
    ProviderKind.MICROSOFT_COPILOT: MicrosoftCopilotAdapter,
    ProviderKind.OLLAMA: OllamaAdapter,
    ProviderKind.LM_STUDIO: LMStudioAdapter,
    ProviderKind.ANYTHING_LLM: AnythingLLMAdapter,
    ProviderKind.CUSTOM: CustomAdapter,
}


def create_adapters(
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[ProviderKind, ProviderAdapter]:
    """
    Instantiate one adapter per provider kind.

    Args:
        transport: Optional httpx transport shared by every adapter

    Returns:
        Mapping from provider kind to adapter instance
    """
    return {kind: adapter_class(transport) for kind, adapter_class in _ADAPTERS.items()}


__all__ = [
    "AnythingLLMAdapter",
    "ChatStrategy",
    "CustomAdapter",
    "GitHubCopilotAdapter",
    "LMStudioAdapter",
    "MicrosoftCopilotAdapter",
    "OllamaAdapter",
    "ProviderAdapter",
    "create_adapters",
    "render_transcript",
]
