"""Shared utilities and configuration."""

from gitty.lib.config import Settings
from gitty.lib.exceptions import (
    GittyError,
    HostingError,
    ProviderError,
    StorageError,
    ValidationError,
)
from gitty.lib.retry import RetryPolicy
from gitty.lib.text import extract_code_block, truncate

__all__ = [
    "Settings",
    "RetryPolicy",
    "extract_code_block",
    "truncate",
    "GittyError",
    "HostingError",
    "ProviderError",
    "StorageError",
    "ValidationError",
]
