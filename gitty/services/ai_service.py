"""AI service facade: routes canonical operations to the active provider."""

import logging
from typing import Any, Iterable, Mapping

from gitty.lib.exceptions import GittyError, UnsupportedOperationError
from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse, coerce_messages
from gitty.models.provider import ProviderDescriptor
from gitty.services.llm import ProviderAdapter
from gitty.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AIService:
    """
    Single entry point for AI operations.

    Resolves the active provider on every call, so an activation made
    between two calls takes effect immediately. Adapter errors propagate
    unchanged.
    """

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def resolve(
        self, operation: CanonicalOperation
    ) -> tuple[str, ProviderDescriptor, ProviderAdapter]:
        """
        Resolve the active provider for ``operation``.

        Returns:
            Tuple of (provider id, descriptor, adapter)

        Raises:
            UnsupportedOperationError: If the active adapter lacks the operation
        """
        operation = CanonicalOperation(operation)
        provider_id, descriptor = await self.registry.get_active()
        adapter = self.registry.get_adapter(provider_id)

        if not adapter.supports(operation):
            raise UnsupportedOperationError(descriptor.name, operation.label)

        return provider_id, descriptor, adapter

    async def generate_code(
        self,
        prompt: str,
        language: str | None = None,
        context: str | None = None,
        options: Mapping[str, Any] | None = None,
        access_token: str | None = None,
    ) -> str:
        """Generate code from a natural-language prompt."""
        provider_id, descriptor, adapter = await self.resolve(CanonicalOperation.GENERATE_CODE)
        logger.debug(f"generate_code via {provider_id}")
        try:
            return await adapter.generate_code(
                prompt, language, context, options, descriptor, access_token=access_token
            )
        except GittyError as e:
            logger.error(f"Code generation failed with {provider_id}: {e.message}")
            raise

    async def complete_code(
        self,
        code: str,
        language: str | None = None,
        options: Mapping[str, Any] | None = None,
        access_token: str | None = None,
    ) -> str:
        """Continue ``code`` where it left off."""
        provider_id, descriptor, adapter = await self.resolve(CanonicalOperation.COMPLETE_CODE)
        logger.debug(f"complete_code via {provider_id}")
        try:
            return await adapter.complete_code(
                code, language, options, descriptor, access_token=access_token
            )
        except GittyError as e:
            logger.error(f"Code completion failed with {provider_id}: {e.message}")
            raise

    async def explain_code(
        self,
        code: str,
        language: str | None = None,
        options: Mapping[str, Any] | None = None,
        access_token: str | None = None,
    ) -> str:
        """Explain ``code`` in plain language."""
        provider_id, descriptor, adapter = await self.resolve(CanonicalOperation.EXPLAIN_CODE)
        logger.debug(f"explain_code via {provider_id}")
        try:
            return await adapter.explain_code(
                code, language, options, descriptor, access_token=access_token
            )
        except GittyError as e:
            logger.error(f"Code explanation failed with {provider_id}: {e.message}")
            raise

    async def chat(
        self,
        messages: Iterable[ChatMessage | dict[str, Any]],
        options: Mapping[str, Any] | None = None,
        access_token: str | None = None,
    ) -> ChatResponse:
        """
        Continue a conversation.

        Args:
            messages: Conversation history, oldest first; ChatMessage or
                ``{"role", "content"}`` dicts
        """
        messages = coerce_messages(messages)
        provider_id, descriptor, adapter = await self.resolve(CanonicalOperation.CHAT)
        logger.debug(f"chat via {provider_id} ({len(messages)} messages)")
        try:
            return await adapter.chat(messages, options, descriptor, access_token=access_token)
        except GittyError as e:
            logger.error(f"Chat failed with {provider_id}: {e.message}")
            raise
