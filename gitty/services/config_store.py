"""Provider configuration store with atomic JSON persistence.

The document is written to a temp file in the same directory and moved
into place with os.replace, so a reader never sees a half-written file.
An asyncio.Lock scoped to the document serializes writers inside the
process; blocking file I/O runs in a worker thread.
"""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable

from pydantic import ValidationError as PydanticValidationError

from gitty.lib.exceptions import StorageError
from gitty.models.provider import ProviderConfigSet, default_provider_configs

logger = logging.getLogger(__name__)


class ProviderConfigStore:
    """
    Persists the provider configuration document.

    The in-memory copy is a cache: it is dropped on every write and
    re-read on the next load. Callers always receive a deep copy, so
    mutating a loaded set never leaks into the cache.
    """

    def __init__(
        self,
        path: Path,
        defaults: Callable[[], ProviderConfigSet] = default_provider_configs,
    ):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
            defaults: Factory for the first-run configuration set
        """
        self.path = Path(path)
        self._defaults = defaults
        self._lock = asyncio.Lock()
        self._cache: ProviderConfigSet | None = None

    async def load(self) -> ProviderConfigSet:
        """
        Load the configuration set, creating defaults on first access.

        Raises:
            StorageError: If the document exists but cannot be read or parsed
        """
        async with self._lock:
            return await self._load_unlocked()

    async def save(self, configs: ProviderConfigSet) -> None:
        """
        Persist the configuration set atomically.

        Raises:
            StorageError: If the document cannot be written
        """
        async with self._lock:
            await self._save_unlocked(configs)

    async def reset(self) -> ProviderConfigSet:
        """Overwrite the document with defaults (recovery from corruption)."""
        async with self._lock:
            configs = self._defaults()
            await self._save_unlocked(configs)
            logger.warning(f"Provider configuration reset to defaults at {self.path}")
            return configs.model_copy(deep=True)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ProviderConfigSet]:
        """
        Load, let the caller mutate, then save, all under the store lock.

        Nothing is written if the body raises.

        Example:
            async with store.transaction() as configs:
                configs.activate("ollama")
        """
        async with self._lock:
            configs = await self._load_unlocked()
            yield configs
            await self._save_unlocked(configs)

    async def _load_unlocked(self) -> ProviderConfigSet:
        if self._cache is not None:
            return self._cache.model_copy(deep=True)

        document = await asyncio.to_thread(self._read_document)

        if document is None:
            configs = self._defaults()
            logger.info(f"No provider configuration at {self.path}, writing defaults")
            await self._save_unlocked(configs)
        else:
            try:
                configs = ProviderConfigSet.from_document(document)
            except PydanticValidationError as e:
                raise StorageError(
                    f"Invalid provider configuration document: {e}",
                    path=str(self.path),
                    operation="read",
                ) from e
            self._reconcile(configs)

        self._cache = configs
        return configs.model_copy(deep=True)

    async def _save_unlocked(self, configs: ProviderConfigSet) -> None:
        self._cache = None
        await asyncio.to_thread(self._write_document, configs.to_document())

    def _reconcile(self, configs: ProviderConfigSet) -> None:
        """Drop unregistered ids and add missing registered ones (disabled)."""
        defaults = self._defaults()
        for provider_id in configs.ids():
            if provider_id not in defaults:
                del configs.providers[provider_id]
                logger.warning(f"Dropped unknown provider '{provider_id}' from configuration")

        for provider_id, descriptor in defaults.items():
            if provider_id not in configs:
                descriptor.enabled = False
                configs[provider_id] = descriptor
                logger.info(f"Added missing provider '{provider_id}' from defaults")

    def _read_document(self) -> dict | None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted provider configuration at {self.path}: {e}")
            raise StorageError(
                f"Corrupted provider configuration at {self.path}",
                path=str(self.path),
                operation="read",
            ) from e
        except OSError as e:
            logger.error(f"Failed to read provider configuration: {e}")
            raise StorageError(
                f"Failed to read provider configuration: {e}",
                path=str(self.path),
                operation="read",
            ) from e

        if not isinstance(document, dict):
            raise StorageError(
                "Provider configuration document must be a JSON object",
                path=str(self.path),
                operation="read",
            )
        return document

    def _write_document(self, document: dict) -> None:
        json_content = json.dumps(document, indent=2, ensure_ascii=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".ai-providers_",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(
                f"Failed to save provider configuration: {e}",
                path=str(self.path),
                operation="write",
            ) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(json_content)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, self.path)
            logger.debug(f"Saved provider configuration to {self.path}")

        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageError(
                f"Failed to save provider configuration: {e}",
                path=str(self.path),
                operation="write",
            ) from e
