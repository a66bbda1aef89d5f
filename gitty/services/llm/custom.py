"""Adapter for user-supplied endpoints.

Only code generation is supported. The OpenAI-compatible
``/v1/completions`` endpoint is tried first, then a generic
``/generate`` endpoint whose response shape is guessed.
"""

import json
import logging
from typing import Any, Mapping

from gitty.lib.exceptions import ProviderOperationError
from gitty.models.chat import CanonicalOperation
from gitty.models.provider import ProviderDescriptor, ProviderKind
from gitty.services.llm.base import (
    GENERATION_DEFAULTS,
    ProviderAdapter,
    generation_prompt,
    merge_options,
)

logger = logging.getLogger(__name__)

# Response keys probed on the generic endpoint, in order
GENERIC_RESPONSE_KEYS = ("code", "generated_text", "response", "output")


class CustomAdapter(ProviderAdapter):
    """Adapter for a custom backend configured with an endpoint and optional API key."""

    kind = ProviderKind.CUSTOM
    display_name = "Custom Provider"
    supported_operations = frozenset({CanonicalOperation.GENERATE_CODE})
    default_endpoint = None
    default_model = "default"

    def headers(self, config: ProviderDescriptor, access_token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    async def generate_code(
        self,
        prompt: str,
        language: str | None,
        context: str | None,
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> str:
        self.base_url(config)
        params = merge_options(options, GENERATION_DEFAULTS)
        model = params.pop("model", None) or self.model_name(config)
        full_prompt = generation_prompt(prompt, language, context)

        try:
            data = await self.post(
                config,
                "/v1/completions",
                {"model": model, "prompt": full_prompt, "n": 1, **params},
            )
            return self.normalize(self.pick(data, "choices", 0, "text"))
        except ProviderOperationError as e:
            logger.warning(f"OpenAI-compatible endpoint failed, trying /generate: {e.message}")

        data = await self.post(
            config,
            "/generate",
            {"prompt": full_prompt, "language": language, "options": params},
        )
        return self.normalize(self._generic_text(data))

    def _generic_text(self, data: Any) -> str:
        if isinstance(data, dict):
            for key in GENERIC_RESPONSE_KEYS:
                if isinstance(data.get(key), str):
                    return data[key]
        if isinstance(data, str):
            return data
        return json.dumps(data)
