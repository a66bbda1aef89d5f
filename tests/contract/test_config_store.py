"""Contract tests for ProviderConfigStore.

Tests focus on:
- First-run defaults being persisted
- Atomic writes (no temp files left behind)
- Corrupted documents surfacing as StorageError, and reset() recovering
"""

import json
from pathlib import Path

import pytest

from gitty.lib.exceptions import StorageError
from gitty.services.config_store import ProviderConfigStore


class TestLoad:
    """Tests for ProviderConfigStore.load()."""

    @pytest.mark.asyncio
    async def test_first_load_persists_defaults(self, store, providers_path: Path):
        configs = await store.load()

        assert providers_path.exists()
        document = json.loads(providers_path.read_text(encoding="utf-8"))
        assert list(document) == configs.ids()
        assert document["github-copilot"]["enabled"] is True
        assert document["anything-llm"]["requiresApiKey"] is True

    @pytest.mark.asyncio
    async def test_reads_existing_document(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text(
            json.dumps({"ollama": {"name": "Ollama", "enabled": True, "model": "llama3"}}),
            encoding="utf-8",
        )
        store = ProviderConfigStore(providers_path)

        configs = await store.load()

        assert configs["ollama"].model == "llama3"
        assert configs.enabled_ids() == ["ollama"]

    @pytest.mark.asyncio
    async def test_missing_providers_filled_in_disabled(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text(
            json.dumps({"ollama": {"name": "Ollama", "enabled": True}}), encoding="utf-8"
        )
        store = ProviderConfigStore(providers_path)

        configs = await store.load()

        assert "custom" in configs
        assert configs["github-copilot"].enabled is False
        assert configs.enabled_ids() == ["ollama"]

    @pytest.mark.asyncio
    async def test_unregistered_ids_dropped(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text(
            json.dumps(
                {
                    "legacy": {"name": "Legacy", "enabled": True},
                    "ollama": {"name": "Ollama", "enabled": False},
                }
            ),
            encoding="utf-8",
        )
        store = ProviderConfigStore(providers_path)

        configs = await store.load()

        assert "legacy" not in configs
        assert configs.enabled_ids() == []
        assert "ollama" in configs

    @pytest.mark.asyncio
    async def test_corrupted_document_raises(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text("{not json", encoding="utf-8")
        store = ProviderConfigStore(providers_path)

        with pytest.raises(StorageError) as exc_info:
            await store.load()

        assert exc_info.value.operation == "read"

    @pytest.mark.asyncio
    async def test_non_object_document_raises(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text("[1, 2, 3]", encoding="utf-8")
        store = ProviderConfigStore(providers_path)

        with pytest.raises(StorageError):
            await store.load()

    @pytest.mark.asyncio
    async def test_invalid_descriptor_raises(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text(json.dumps({"ollama": {"enabled": True}}), encoding="utf-8")
        store = ProviderConfigStore(providers_path)

        with pytest.raises(StorageError):
            await store.load()

    @pytest.mark.asyncio
    async def test_loaded_copies_are_independent(self, store):
        first = await store.load()
        first.activate("ollama")

        second = await store.load()

        assert second.enabled_ids() == ["github-copilot"]


class TestSave:
    """Tests for save(), transaction() and reset()."""

    @pytest.mark.asyncio
    async def test_save_round_trip(self, store, providers_path: Path):
        configs = await store.load()
        configs.activate("lm-studio")

        await store.save(configs)

        reloaded = await ProviderConfigStore(providers_path).load()
        assert reloaded.enabled_ids() == ["lm-studio"]

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, store, providers_path: Path):
        await store.load()
        async with store.transaction() as configs:
            configs.activate("ollama")

        leftovers = [p.name for p in providers_path.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_transaction_not_saved_when_body_raises(self, store):
        await store.load()

        with pytest.raises(RuntimeError):
            async with store.transaction() as configs:
                configs.activate("ollama")
                raise RuntimeError("abort")

        assert (await store.load()).enabled_ids() == ["github-copilot"]

    @pytest.mark.asyncio
    async def test_reset_recovers_corrupted_document(self, providers_path: Path):
        providers_path.parent.mkdir(parents=True)
        providers_path.write_text("garbage", encoding="utf-8")
        store = ProviderConfigStore(providers_path)

        configs = await store.reset()

        assert configs.enabled_ids() == ["github-copilot"]
        assert (await store.load()).ids() == configs.ids()

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        store = ProviderConfigStore(blocker / "ai-providers.json")

        with pytest.raises(StorageError) as exc_info:
            await store.load()

        assert exc_info.value.operation in ("read", "write")
