"""Domain models for providers, chat and repository creation."""

from gitty.models.chat import CanonicalOperation, ChatMessage, ChatResponse, ChatRole
from gitty.models.provider import (
    DEFAULT_PROVIDER_ID,
    ProviderConfigSet,
    ProviderDescriptor,
    ProviderKind,
    default_provider_configs,
)
from gitty.models.repository import (
    AIErrorInfo,
    AIStatus,
    FailedFile,
    FilePlan,
    FilePlanEntry,
    PlanMode,
    RepositoryCreationResult,
    RepositoryIdentity,
    RepositoryOptions,
    TransactionStage,
)

__all__ = [
    "CanonicalOperation",
    "ChatMessage",
    "ChatResponse",
    "ChatRole",
    "DEFAULT_PROVIDER_ID",
    "ProviderConfigSet",
    "ProviderDescriptor",
    "ProviderKind",
    "default_provider_configs",
    "AIErrorInfo",
    "AIStatus",
    "FailedFile",
    "FilePlan",
    "FilePlanEntry",
    "PlanMode",
    "RepositoryCreationResult",
    "RepositoryIdentity",
    "RepositoryOptions",
    "TransactionStage",
]
