"""Microsoft Copilot adapter (OpenAI-style completion and chat endpoints)."""

from typing import Any, Mapping

import httpx

from gitty import __version__
from gitty.lib.exceptions import InvalidCredentialsError, ProviderError
from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse
from gitty.models.provider import ProviderDescriptor, ProviderKind
from gitty.services.llm.base import (
    CONVERSATION_DEFAULTS,
    GENERATION_DEFAULTS,
    HOSTED_TIMEOUT,
    ProviderAdapter,
    completion_prompt,
    explanation_prompt,
    generation_prompt,
    merge_options,
)

MICROSOFT_COPILOT_URL = "https://api.microsoft.com/v1/copilot"


class MicrosoftCopilotAdapter(ProviderAdapter):
    """Adapter for Microsoft Copilot, authenticated with a stored API key."""

    kind = ProviderKind.MICROSOFT_COPILOT
    display_name = "Microsoft Copilot"
    supported_operations = frozenset(CanonicalOperation)
    timeout = HOSTED_TIMEOUT
    default_endpoint = MICROSOFT_COPILOT_URL
    default_model = "microsoft-copilot"

    def headers(self, config: ProviderDescriptor, access_token: str | None) -> dict[str, str]:
        if not config.api_key:
            raise InvalidCredentialsError(
                "Microsoft Copilot API key is required", provider=self.display_name
            )
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
            "User-Agent": f"gitty-ai/{__version__}",
        }

    def status_error(self, response: httpx.Response) -> ProviderError:
        if response.status_code == 401:
            return InvalidCredentialsError(
                "Invalid Microsoft Copilot API key", provider=self.display_name
            )
        return super().status_error(response)

    async def _codex(
        self, prompt: str, language: str | None, options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
    ) -> str:
        payload = {
            "prompt": prompt,
            "language": language,
            "n": 1,
            **merge_options(options, GENERATION_DEFAULTS),
        }
        data = await self.post(config, "/codex/completions", payload)
        return self.normalize(self.pick(data, "choices", 0, "text"))

    async def _chat_completion(
        self, messages: list[dict[str, str]], options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
    ) -> dict[str, Any]:
        payload = {
            "model": self.model_name(config),
            "messages": messages,
            "n": 1,
            **merge_options(options, CONVERSATION_DEFAULTS),
        }
        return await self.post(config, "/chat/completions", payload)

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        return await self._codex(generation_prompt(prompt, language, context), language, options, config)

    async def complete_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        return await self._codex(completion_prompt(code, language), language, options, config)

    async def explain_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        messages = [
            {"role": "system", "content": "You are an AI assistant that explains code."},
            {"role": "user", "content": explanation_prompt(code, language)},
        ]
        data = await self._chat_completion(messages, options, config)
        return self.normalize(self.pick(data, "choices", 0, "message", "content"))

    async def chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        data = await self._chat_completion(
            [message.to_wire() for message in messages], options, config
        )
        return ChatResponse(
            message=self.normalize(self.pick(data, "choices", 0, "message", "content")),
            model=self.default_model,
        )
