"""GitHub Copilot adapter.

Authenticates with the signed-in user's GitHub token rather than a
stored API key.
"""

from typing import Any, Mapping

import httpx

from gitty.lib.exceptions import InvalidCredentialsError, ProviderError, ProviderOperationError
from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse
from gitty.models.provider import ProviderDescriptor, ProviderKind
from gitty.services.llm.base import (
    CONVERSATION_DEFAULTS,
    GENERATION_DEFAULTS,
    HOSTED_TIMEOUT,
    ProviderAdapter,
    merge_options,
)

GITHUB_API_URL = "https://api.github.com"


class GitHubCopilotAdapter(ProviderAdapter):
    """Adapter for the GitHub Copilot REST endpoints."""

    kind = ProviderKind.GITHUB_COPILOT
    display_name = "GitHub Copilot"
    supported_operations = frozenset(CanonicalOperation)
    timeout = HOSTED_TIMEOUT
    default_endpoint = GITHUB_API_URL
    default_model = "github-copilot"

    def headers(self, config: ProviderDescriptor, access_token: str | None) -> dict[str, str]:
        if not access_token:
            raise InvalidCredentialsError(
                "GitHub authentication required. Sign in with GitHub to use Copilot.",
                provider=self.display_name,
            )
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Content-Type": "application/json",
        }

    def status_error(self, response: httpx.Response) -> ProviderError:
        if response.status_code == 401:
            return InvalidCredentialsError(
                "GitHub authentication failed. Please sign in with GitHub again.",
                provider=self.display_name,
            )
        if response.status_code == 403:
            return ProviderOperationError(
                "Access to GitHub Copilot denied. Make sure your account has Copilot access.",
                provider=self.display_name,
                status_code=403,
            )
        return super().status_error(response)

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        payload = {
            "prompt": prompt,
            "language": language,
            "context": context,
            "options": merge_options(options, GENERATION_DEFAULTS),
        }
        data = await self.post(config, "/copilot/generate", payload, access_token)
        return self.normalize(self.pick(data, "code"))

    async def complete_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        payload = {
            "code": code,
            "language": language,
            "options": merge_options(options, GENERATION_DEFAULTS),
        }
        data = await self.post(config, "/copilot/complete", payload, access_token)
        return self.normalize(self.pick(data, "completion"))

    async def explain_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        payload = {
            "code": code,
            "language": language,
            "options": merge_options(options, CONVERSATION_DEFAULTS),
        }
        data = await self.post(config, "/copilot/explain", payload, access_token)
        return self.normalize(self.pick(data, "explanation"))

    async def chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        payload = {
            "messages": [message.to_wire() for message in messages],
            "options": merge_options(options, CONVERSATION_DEFAULTS),
        }
        data = await self.post(config, "/copilot/chat", payload, access_token)
        return ChatResponse(
            message=self.normalize(self.pick(data, "message")),
            model=data.get("model") or self.default_model,
        )
