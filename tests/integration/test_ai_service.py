"""Integration tests for AIService routing through registry and adapters."""

import httpx
import pytest

from gitty.lib.exceptions import BackendUnreachableError, UnsupportedOperationError
from gitty.models.chat import CanonicalOperation
from gitty.services.ai_service import AIService
from gitty.services.llm import create_adapters
from gitty.services.registry import ProviderRegistry


@pytest.fixture
def local_backend(backend):
    """One fake server answering every local backend's endpoints."""

    def respond(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/generate":
            return httpx.Response(200, json={"response": "```js\nconsole.log(1)\n```"})
        if path == "/api/chat":
            return httpx.Response(200, json={"message": {"content": "pong"}})
        if path.endswith("/chat/completions"):
            return httpx.Response(
                200, json={"choices": [{"message": {"content": "lm studio says hi"}}]}
            )
        if path.endswith("/completions"):
            return httpx.Response(200, json={"choices": [{"text": "lm studio completes"}]})
        return httpx.Response(404)

    return backend(respond)


@pytest.fixture
def service(store, local_backend) -> AIService:
    registry = ProviderRegistry(store, create_adapters(local_backend.transport))
    return AIService(registry)


class TestAIService:
    """End-to-end routing tests."""

    @pytest.mark.asyncio
    async def test_routes_to_active_provider(self, service, local_backend):
        await service.registry.update_config("ollama", {"endpoint": "http://ollama.test"})
        await service.registry.set_active("ollama")

        code = await service.generate_code("log one", language="javascript")

        assert code == "console.log(1)"
        assert local_backend.requests[0].url.host == "ollama.test"

    @pytest.mark.asyncio
    async def test_switching_provider_takes_effect_immediately(self, service):
        await service.registry.set_active("ollama")
        first = await service.chat([{"role": "user", "content": "ping"}])

        await service.registry.set_active("lm-studio")
        second = await service.chat([{"role": "user", "content": "ping"}])

        assert first.message == "pong"
        assert second.message == "lm studio says hi"

    @pytest.mark.asyncio
    async def test_unsupported_operation_raised_before_network(self, service, local_backend):
        await service.registry.set_active("custom")

        with pytest.raises(UnsupportedOperationError) as exc_info:
            await service.explain_code("print(1)", language="python")

        assert "Custom Provider" in exc_info.value.message
        assert "explain code" in exc_info.value.message
        assert local_backend.requests == []

    @pytest.mark.asyncio
    async def test_resolve_returns_active_adapter(self, service):
        await service.registry.set_active("lm-studio")

        provider_id, descriptor, adapter = await service.resolve(CanonicalOperation.CHAT)

        assert provider_id == "lm-studio"
        assert descriptor.name == "LM Studio"
        assert adapter.supports(CanonicalOperation.CHAT)

    @pytest.mark.asyncio
    async def test_adapter_errors_propagate_unchanged(self, store):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        registry = ProviderRegistry(store, create_adapters(httpx.MockTransport(refuse)))
        service = AIService(registry)
        await registry.set_active("ollama")

        with pytest.raises(BackendUnreachableError) as exc_info:
            await service.complete_code("def f(")

        assert "Ollama" in exc_info.value.message
