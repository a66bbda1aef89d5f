"""Shared pytest fixtures for all test types."""

import json
from pathlib import Path
from typing import Callable

import httpx
import pytest

from gitty.lib.config import reset_settings
from gitty.models.provider import ProviderDescriptor
from gitty.services.config_store import ProviderConfigStore


class BackendRecorder:
    """httpx.MockTransport handler that records every request it answers."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def body(self, index: int = -1) -> dict:
        """Decoded JSON body of a recorded request."""
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def _reset_settings():
    """Settings are cached per process; start every test clean."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def backend() -> Callable[..., BackendRecorder]:
    """
    Build a recording backend.

    Usage:
        recorder = backend(lambda request: httpx.Response(200, json={...}))
        adapter = OllamaAdapter(transport=recorder.transport)
    """
    return BackendRecorder


@pytest.fixture
def providers_path(tmp_path: Path) -> Path:
    """Location of the provider configuration document."""
    return tmp_path / "data" / "ai-providers.json"


@pytest.fixture
def store(providers_path: Path) -> ProviderConfigStore:
    """Provider configuration store backed by a temp directory."""
    return ProviderConfigStore(providers_path)


@pytest.fixture
def ollama_config() -> ProviderDescriptor:
    return ProviderDescriptor(
        name="Ollama",
        enabled=True,
        requires_endpoint=True,
        endpoint="http://ollama.test",
        model="codellama",
    )
