"""AnythingLLM adapter.

AnythingLLM takes a single ``message`` string, so every operation is
flattened into one prompt.
"""

from typing import Any, Mapping

from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse, ChatRole
from gitty.models.provider import ProviderDescriptor, ProviderKind
from gitty.services.llm.base import (
    ProviderAdapter,
    completion_prompt,
    explanation_prompt,
    generation_prompt,
    merge_options,
)


def flatten_conversation(messages: list[ChatMessage]) -> str:
    """
    Collapse a conversation into one message.

    The first system message is a preamble, earlier turns are rendered
    as ``User:`` / ``Assistant:`` lines, and the most recent user message
    is appended verbatim.
    """
    flattened = ""

    system = next((m for m in messages if m.role == ChatRole.SYSTEM), None)
    if system is not None:
        flattened += f"{system.content}\n\n"

    history = [m for m in messages if m.role != ChatRole.SYSTEM]
    last_user = max(
        (index for index, m in enumerate(history) if m.role == ChatRole.USER), default=None
    )

    for index, message in enumerate(history):
        if index == last_user:
            continue
        speaker = "User" if message.role == ChatRole.USER else "Assistant"
        flattened += f"{speaker}: {message.content}\n"

    if last_user is not None:
        flattened += history[last_user].content
    return flattened


class AnythingLLMAdapter(ProviderAdapter):
    """Adapter for AnythingLLM's ``/api/chat`` endpoint."""

    kind = ProviderKind.ANYTHING_LLM
    display_name = "AnythingLLM"
    supported_operations = frozenset(CanonicalOperation)
    default_endpoint = "http://localhost:3001"
    default_model = "AnythingLLM"

    def headers(self, config: ProviderDescriptor, access_token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["x-api-key"] = config.api_key
        return headers

    async def _send(
        self, message: str, options: Mapping[str, Any] | None, config: ProviderDescriptor
    ) -> dict[str, Any]:
        payload = {"message": message, **merge_options(options)}
        return await self.post(config, "/api/chat", payload)

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        data = await self._send(generation_prompt(prompt, language, context), options, config)
        return self.normalize(self.pick(data, "response"))

    async def complete_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        data = await self._send(completion_prompt(code, language), options, config)
        return self.normalize(self.pick(data, "response"))

    async def explain_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        data = await self._send(explanation_prompt(code, language), options, config)
        return self.normalize(self.pick(data, "response"))

    async def chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        data = await self._send(flatten_conversation(messages), options, config)
        return ChatResponse(
            message=self.normalize(self.pick(data, "response")),
            model=data.get("model") or self.default_model,
        )
