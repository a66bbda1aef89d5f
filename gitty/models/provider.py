"""Provider descriptors and the persisted provider configuration set."""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from gitty.lib.exceptions import ValidationError


class ProviderKind(str, Enum):
    """Closed set of supported LLM backends."""

    GITHUB_COPILOT = "github-copilot"
    MICROSOFT_COPILOT = "microsoft-copilot"
    OLLAMA = "ollama"
    LM_STUDIO = "lm-studio"
    ANYTHING_LLM = "anything-llm"
    CUSTOM = "custom"


DEFAULT_PROVIDER_ID = ProviderKind.GITHUB_COPILOT.value


class ProviderDescriptor(BaseModel):
    """
    Persisted configuration record for one provider.

    Serialized with camelCase keys (``requiresApiKey``), which is the
    format of the configuration document. Snake-case names are accepted
    on input as well.
    """

    name: str = Field(..., description="Display name")
    enabled: bool = Field(default=False, description="Whether this is the active provider")
    requires_api_key: bool = Field(default=False, alias="requiresApiKey")
    requires_endpoint: bool = Field(default=False, alias="requiresEndpoint")
    endpoint: str | None = Field(default=None, description="Backend base URL")
    api_key: str | None = Field(default=None, alias="apiKey")
    model: str | None = Field(default=None, description="Model name sent to the backend")
    icon: str | None = Field(default=None)
    description: str = Field(default="")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted document format."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def merged(self, fields: Mapping[str, Any]) -> "ProviderDescriptor":
        """
        Return a copy with ``fields`` merged in.

        Args:
            fields: Partial fields, keyed by camelCase alias or field name

        Raises:
            ValidationError: On unknown field names or invalid values
        """
        aliases = {
            (info.alias or name): name for name, info in type(self).model_fields.items()
        }
        known = set(type(self).model_fields) | set(aliases)
        unknown = sorted(key for key in fields if key not in known)
        if unknown:
            raise ValidationError(
                f"Unknown provider configuration field(s): {', '.join(unknown)}",
                field=unknown[0],
            )

        data = self.model_dump()
        for key, value in fields.items():
            data[aliases.get(key, key)] = value

        try:
            return type(self).model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid provider configuration: {e}") from e


class ProviderConfigSet(BaseModel):
    """Ordered mapping from provider id to descriptor."""

    providers: dict[str, ProviderDescriptor] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ProviderConfigSet":
        """Build from the persisted JSON document (id -> descriptor dict)."""
        return cls(
            providers={
                provider_id: ProviderDescriptor.model_validate(fields)
                for provider_id, fields in document.items()
            }
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted JSON document."""
        return {
            provider_id: descriptor.to_document()
            for provider_id, descriptor in self.providers.items()
        }

    def __getitem__(self, provider_id: str) -> ProviderDescriptor:
        return self.providers[provider_id]

    def __setitem__(self, provider_id: str, descriptor: ProviderDescriptor) -> None:
        self.providers[provider_id] = descriptor

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self.providers

    def ids(self) -> list[str]:
        return list(self.providers)

    def __len__(self) -> int:
        return len(self.providers)

    def items(self):
        return self.providers.items()

    def enabled_ids(self) -> list[str]:
        """Ids of every enabled descriptor, in document order."""
        return [pid for pid, descriptor in self.providers.items() if descriptor.enabled]

    def activate(self, provider_id: str) -> ProviderDescriptor:
        """Enable ``provider_id`` and disable every other descriptor."""
        for pid, descriptor in self.providers.items():
            descriptor.enabled = pid == provider_id
        return self.providers[provider_id]


def default_provider_configs() -> ProviderConfigSet:
    """Fresh copy of the first-run configuration (GitHub Copilot enabled)."""
    return ProviderConfigSet(
        providers={
            ProviderKind.GITHUB_COPILOT.value: ProviderDescriptor(
                name="GitHub Copilot",
                enabled=True,
                requires_api_key=False,
                requires_endpoint=False,
                icon="github",
                description="GitHub Copilot AI assistant powered by OpenAI",
            ),
            ProviderKind.MICROSOFT_COPILOT.value: ProviderDescriptor(
                name="Microsoft Copilot",
                requires_api_key=True,
                api_key="",
                icon="microsoft",
                description="Microsoft AI assistant for code and natural language",
            ),
            ProviderKind.OLLAMA.value: ProviderDescriptor(
                name="Ollama",
                requires_endpoint=True,
                endpoint="http://localhost:11434",
                model="codellama",
                icon="ollama",
                description="Run large language models locally with Ollama",
            ),
            ProviderKind.LM_STUDIO.value: ProviderDescriptor(
                name="LM Studio",
                requires_endpoint=True,
                endpoint="http://localhost:1234/v1",
                model="default",
                icon="lmstudio",
                description="Run inference for large language models locally",
            ),
            ProviderKind.ANYTHING_LLM.value: ProviderDescriptor(
                name="AnythingLLM",
                requires_api_key=True,
                requires_endpoint=True,
                endpoint="http://localhost:3001",
                api_key="",
                icon="anythingllm",
                description="Embed and chat with documents using your data",
            ),
            ProviderKind.CUSTOM.value: ProviderDescriptor(
                name="Custom Provider",
                requires_api_key=True,
                requires_endpoint=True,
                endpoint="https://api.example.com",
                api_key="",
                icon="custom",
                description="Connect to your own custom AI provider",
            ),
        }
    )
