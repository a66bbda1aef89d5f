"""Provider registry: which provider is active, and its adapter."""

import logging
from typing import Any, Mapping

from gitty.lib.exceptions import StorageError, UnknownProviderError
from gitty.models.provider import (
    DEFAULT_PROVIDER_ID,
    ProviderConfigSet,
    ProviderDescriptor,
    ProviderKind,
)
from gitty.services.config_store import ProviderConfigStore
from gitty.services.llm import ProviderAdapter, create_adapters

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Maintains the single-active-provider invariant over the config store.

    Every read-modify-write runs inside ``store.transaction()``, so
    concurrent activations serialize on the store lock and leave exactly
    one descriptor enabled.
    """

    def __init__(
        self,
        store: ProviderConfigStore,
        adapters: Mapping[ProviderKind, ProviderAdapter] | None = None,
    ):
        """
        Initialize the registry.

        Args:
            store: Provider configuration store
            adapters: Adapter per provider kind (defaults to real adapters)
        """
        self.store = store
        self._adapters = dict(adapters) if adapters is not None else create_adapters()

    def is_registered(self, provider_id: str) -> bool:
        """Whether ``provider_id`` names a known provider kind."""
        return provider_id in {kind.value for kind in ProviderKind}

    def _require_registered(self, provider_id: str) -> ProviderKind:
        if not self.is_registered(provider_id):
            raise UnknownProviderError(provider_id, [kind.value for kind in ProviderKind])
        return ProviderKind(provider_id)

    async def list_providers(self) -> ProviderConfigSet:
        """Return every provider descriptor, in document order."""
        return await self.store.load()

    async def get_active(self) -> tuple[str, ProviderDescriptor]:
        """
        Return the active provider id and descriptor.

        Repairs the document when it does not hold exactly one enabled
        descriptor: none enabled activates the default provider, several
        enabled keeps the first. The repair is persisted. An unreadable
        document is replaced with the defaults.
        """
        try:
            configs = await self.store.load()
        except StorageError as e:
            logger.warning(f"{e.message}, restoring default provider configuration")
            configs = await self.store.reset()
            return DEFAULT_PROVIDER_ID, configs[DEFAULT_PROVIDER_ID]

        enabled = configs.enabled_ids()
        if len(enabled) == 1:
            return enabled[0], configs[enabled[0]]

        async with self.store.transaction() as configs:
            enabled = configs.enabled_ids()
            if not enabled:
                provider_id = DEFAULT_PROVIDER_ID
                logger.warning(f"No active AI provider, enabling default '{provider_id}'")
            else:
                provider_id = enabled[0]
                if len(enabled) > 1:
                    logger.warning(
                        f"Multiple active AI providers ({', '.join(enabled)}), keeping '{provider_id}'"
                    )
            descriptor = configs.activate(provider_id)

        return provider_id, descriptor

    async def set_active(self, provider_id: str) -> ProviderDescriptor:
        """
        Make ``provider_id`` the only enabled provider.

        Raises:
            UnknownProviderError: If the id is not registered
        """
        self._require_registered(provider_id)

        async with self.store.transaction() as configs:
            descriptor = configs.activate(provider_id)

        logger.info(f"Active AI provider set to '{provider_id}'")
        return descriptor

    async def update_config(
        self, provider_id: str, fields: Mapping[str, Any]
    ) -> ProviderDescriptor:
        """
        Merge ``fields`` into a provider descriptor and persist.

        Keys may be camelCase (``apiKey``) or snake_case (``api_key``).
        ``enabled: true`` activates the provider exclusively;
        ``enabled: false`` is ignored so the set never ends up without an
        active provider.

        Raises:
            UnknownProviderError: If the id is not registered
            ValidationError: On unknown field names or invalid values
        """
        self._require_registered(provider_id)
        fields = dict(fields)
        enable = fields.pop("enabled", None)

        async with self.store.transaction() as configs:
            descriptor = configs[provider_id].merged(fields)
            configs[provider_id] = descriptor
            if enable:
                descriptor = configs.activate(provider_id)

        logger.info(f"Updated configuration for '{provider_id}'")
        return descriptor

    def get_adapter(self, provider_id: str) -> ProviderAdapter:
        """
        Return the adapter for a registered provider.

        Raises:
            UnknownProviderError: If the id is not registered
        """
        kind = self._require_registered(provider_id)
        return self._adapters[kind]
