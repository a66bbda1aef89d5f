"""Ollama adapter for locally served models."""

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


class OllamaAdapter(ProviderAdapter):
    """
    Adapter for the Ollama HTTP API.

    Generation operations use ``/api/generate`` with streaming disabled.
    Chat uses ``/api/chat`` and falls back to a rendered transcript on
    ``/api/generate`` for servers that predate the chat endpoint.
    """

    kind = ProviderKind.OLLAMA
    display_name = "Ollama"
    supported_operations = frozenset(CanonicalOperation)
    default_endpoint = "http://localhost:11434"
    default_model = "codellama"

    def __init__(self, transport=None):
        super().__init__(transport)
        self._chat = ChatStrategy(self.display_name, self._native_chat, self._transcript_chat)

    async def _generate(
        self, prompt: str, options: Mapping[str, Any], config: ProviderDescriptor
    ) -> str:
        payload = {
            "model": self.model_name(config),
            "prompt": prompt,
            "stream": False,
            "options": dict(options),
        }
        data = await self.post(config, "/api/generate", payload)
        return self.pick(data, "response")

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        text = await self._generate(
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
        text = await self._generate(
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
        text = await self._generate(
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
            "stream": False,
            "options": merge_options(options, CONVERSATION_DEFAULTS),
        }
        data = await self.post(config, "/api/chat", payload)
        return ChatResponse(
            message=self.normalize(self.pick(data, "message", "content")),
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
        text = await self._generate(render_transcript(messages), params, config)
        return ChatResponse(message=self.normalize(text), model=self.model_name(config))
