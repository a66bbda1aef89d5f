"""Provider adapter base class and shared request helpers."""

import logging
from abc import ABC
from typing import Any, ClassVar, Mapping

import httpx

from gitty.lib.exceptions import (
    BackendUnreachableError,
    EndpointNotFoundError,
    InvalidCredentialsError,
    ProviderError,
    ProviderOperationError,
    UnsupportedOperationError,
)
from gitty.lib.text import extract_code_block
from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse
from gitty.models.provider import ProviderDescriptor, ProviderKind

logger = logging.getLogger(__name__)

# Per-call timeouts in seconds
HOSTED_TIMEOUT = 30.0
LOCAL_TIMEOUT = 60.0

GENERATION_DEFAULTS: dict[str, Any] = {"temperature": 0.2, "top_p": 0.95, "max_tokens": 1024}
CONVERSATION_DEFAULTS: dict[str, Any] = {"temperature": 0.7, "top_p": 0.95, "max_tokens": 2048}

CODE_ONLY_INSTRUCTION = (
    "Please provide only the code without any explanation or markdown formatting."
)


def merge_options(
    options: Mapping[str, Any] | None, defaults: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Overlay caller options on adapter defaults; ``None`` values do not override."""
    merged = dict(defaults or {})
    merged.update({key: value for key, value in (options or {}).items() if value is not None})
    return merged


def with_context(prompt: str, language: str | None, context: str | None) -> str:
    """Prefix the prompt with surrounding code when there is any."""
    if not context:
        return prompt
    return f"Here is some context:\n```{language or ''}\n{context}\n```\n\n{prompt}"


def generation_prompt(prompt: str, language: str | None, context: str | None) -> str:
    system = (
        "You are an AI assistant that generates code. "
        f"Please provide code in {language or 'any programming language'}."
    )
    return f"{system}\n\n{with_context(prompt, language, context)}\n\n{CODE_ONLY_INSTRUCTION}"


def completion_prompt(code: str, language: str | None) -> str:
    system = (
        "You are an AI assistant that completes code. "
        f"Continue the following {language or 'code'} exactly where it left off."
    )
    return f"{system}\n\n```{language or ''}\n{code}\n"


def explanation_prompt(code: str, language: str | None) -> str:
    system = (
        "You are an AI assistant that explains code. "
        f"Please explain the following {language or 'code'} in a clear and concise manner."
    )
    return f"{system}\n\n```{language or ''}\n{code}\n```\n\nExplanation:"


class ProviderAdapter(ABC):
    """
    Translates canonical operations into one backend's wire protocol.

    Subclasses declare ``supported_operations`` and override the matching
    coroutine methods. Calling an operation that is not overridden raises
    UnsupportedOperationError. Every text-bearing response goes through
    ``normalize`` (first fenced block extracted, otherwise unchanged).

    HTTP failures are classified uniformly:
        connection refused / timeout -> BackendUnreachableError
        401                          -> InvalidCredentialsError
        404                          -> EndpointNotFoundError
        anything else                -> ProviderOperationError
    """

    kind: ClassVar[ProviderKind]
    display_name: ClassVar[str]
    supported_operations: ClassVar[frozenset[CanonicalOperation]] = frozenset()
    timeout: ClassVar[float] = LOCAL_TIMEOUT
    default_endpoint: ClassVar[str | None] = None
    default_model: ClassVar[str] = "default"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize the adapter.

        Args:
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self._transport = transport

    @property
    def provider_name(self) -> str:
        """Return the provider identifier."""
        return self.kind.value

    def supports(self, operation: CanonicalOperation) -> bool:
        """Whether this adapter implements ``operation``."""
        return CanonicalOperation(operation) in self.supported_operations

    # ------------------------------------------------------------------
    # Canonical operations
    # ------------------------------------------------------------------

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        raise self._unsupported(CanonicalOperation.GENERATE_CODE)

    async def complete_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        raise self._unsupported(CanonicalOperation.COMPLETE_CODE)

    async def explain_code(
        self,
        code: str,
        language: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        raise self._unsupported(CanonicalOperation.EXPLAIN_CODE)

    async def chat(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        raise self._unsupported(CanonicalOperation.CHAT)

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    @staticmethod
    def normalize(text: str) -> str:
        return extract_code_block(text.strip())

    def base_url(self, config: ProviderDescriptor) -> str:
        endpoint = config.endpoint or self.default_endpoint
        if not endpoint:
            raise ProviderOperationError(
                f"{self.display_name} API endpoint is required", provider=self.display_name
            )
        return endpoint.rstrip("/")

    def model_name(self, config: ProviderDescriptor) -> str:
        return config.model or self.default_model

    def headers(self, config: ProviderDescriptor, access_token: str | None) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def post(
        self,
        config: ProviderDescriptor,
        path: str,
        payload: dict[str, Any],
        access_token: str | None = None,
    ) -> dict[str, Any]:
        """
        POST ``payload`` to ``path`` under the backend base URL.

        Returns:
            Parsed JSON body

        Raises:
            ProviderError subclass classified from the failure
        """
        url = f"{self.base_url(config)}/{path.lstrip('/')}"
        headers = self.headers(config, access_token)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=payload)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"{self.display_name} unreachable at {url}: {e}")
            raise BackendUnreachableError(self.display_name, original_error=e) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.display_name} request error: {e}")
            raise ProviderOperationError(
                f"Network error: {e}", provider=self.display_name, original_error=e
            ) from e

        if response.status_code >= 400:
            error = self.status_error(response)
            logger.error(f"{self.display_name} returned HTTP {response.status_code}: {error.message}")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise ProviderOperationError(
                "Backend returned invalid JSON",
                provider=self.display_name,
                status_code=response.status_code,
                original_error=e,
            ) from e

    def status_error(self, response: httpx.Response) -> ProviderError:
        """Map an HTTP error response to the error taxonomy."""
        backend_message = _backend_message(response)
        if response.status_code == 401:
            return InvalidCredentialsError(
                f"Authentication failed: {backend_message}", provider=self.display_name
            )
        if response.status_code == 404:
            return EndpointNotFoundError(
                f"Endpoint not found: {response.request.url.path}",
                provider=self.display_name,
                status_code=404,
            )
        return ProviderOperationError(
            f"API error: {backend_message}",
            provider=self.display_name,
            status_code=response.status_code,
        )

    def pick(self, data: Any, *keys: str | int) -> Any:
        """Walk nested response data, failing with ProviderOperationError on a bad shape."""
        current = data
        try:
            for key in keys:
                current = current[key]
        except (KeyError, IndexError, TypeError) as e:
            path = ".".join(str(key) for key in keys)
            raise ProviderOperationError(
                f"Unexpected response format (missing {path})",
                provider=self.display_name,
                original_error=e,
            ) from e
        if current is None:
            raise ProviderOperationError(
                "Empty response content", provider=self.display_name
            )
        return current

    def _unsupported(self, operation: CanonicalOperation) -> UnsupportedOperationError:
        return UnsupportedOperationError(self.display_name, operation.label)


def _backend_message(response: httpx.Response) -> str:
    """Best-effort extraction of the backend's own error message."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        for key in ("message", "detail"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {response.status_code}"
