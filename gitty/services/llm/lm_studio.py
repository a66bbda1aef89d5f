"""LM Studio adapter (OpenAI-compatible local server)."""

from typing import Any, Mapping

from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse
from gitty.models.provider import ProviderDescriptor, ProviderKind
from gitty.services.llm.base import (
    CONVERSATION_DEFAULTS,
    GENERATION_DEFAULTS,
    ProviderAdapter,
    completion_prompt,
    explanation_prompt,
    generation_prompt,
    merge_options,
)
from gitty.services.llm.chat_strategy import TRANSCRIPT_STOP, ChatStrategy, render_transcript


class LMStudioAdapter(ProviderAdapter):
    """Adapter for LM Studio's ``/completions`` and ``/chat/completions`` endpoints."""

    kind = ProviderKind.LM_STUDIO
    display_name = "LM Studio"
    supported_operations = frozenset(CanonicalOperation)
    default_endpoint = "http://localhost:1234/v1"
    default_model = "default"

    def __init__(self, transport=None):
        super().__init__(transport)
        self._chat = ChatStrategy(self.display_name, self._native_chat, self._transcript_chat)

    async def _complete(
        self, prompt: str, params: Mapping[str, Any], config: ProviderDescriptor
    ) -> str:
        payload = {"model": self.model_name(config), "prompt": prompt, **params}
        data = await self.post(config, "/completions", payload)
        return self.pick(data, "choices", 0, "text")

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        text = await self._complete(
            generation_prompt(prompt, language, context),
            merge_options(options, GENERATION_DEFAULTS),
            config,
        )
        return self.normalize(text)

    async def complete_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        text = await self._complete(
            completion_prompt(code, language), merge_options(options, GENERATION_DEFAULTS), config
        )
        return self.normalize(text)

    async def explain_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        text = await self._complete(
            explanation_prompt(code, language),
            merge_options(options, CONVERSATION_DEFAULTS),
            config,
        )
        return self.normalize(text)

    async def chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        return await self._chat(messages, options, config, access_token)

    async def _native_chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None,
    ) -> ChatResponse:
        payload = {
            "model": self.model_name(config),
            "messages": [message.to_wire() for message in messages],
            **merge_options(options, CONVERSATION_DEFAULTS),
        }
        data = await self.post(config, "/chat/completions", payload)
        return ChatResponse(
            message=self.normalize(self.pick(data, "choices", 0, "message", "content")),
            model=data.get("model") or self.model_name(config),
        )

    async def _transcript_chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None,
    ) -> ChatResponse:
        params = merge_options(options, CONVERSATION_DEFAULTS)
        params["stop"] = TRANSCRIPT_STOP
        text = await self._complete(render_transcript(messages), params, config)
        return ChatResponse(message=self.normalize(text), model=self.model_name(config))
