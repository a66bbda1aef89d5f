"""Code-hosting clients."""

from gitty.services.hosting.base import CodeHostingClient
from gitty.services.hosting.github import GitHubClient

__all__ = ["CodeHostingClient", "GitHubClient"]
