"""Code-hosting client protocol."""

from typing import Protocol, runtime_checkable

from gitty.models.repository import RepositoryIdentity


@runtime_checkable
class CodeHostingClient(Protocol):
    """
    Operations the repository orchestrator needs from a code host.

    Implementations raise HostingError (with ``status_code`` and
    ``retry_after``) on failure.
    """

    async def create_repository(
        self, name: str, description: str, private: bool = False
    ) -> RepositoryIdentity:
        """Create an initialized repository owned by the authenticated user."""
        ...

    async def write_file(
        self, repo: RepositoryIdentity, path: str, content: str, message: str | None = None
    ) -> str:
        """Create or update one file; returns the commit sha."""
        ...

    async def update_description(self, repo: RepositoryIdentity, description: str) -> None:
        """Replace the repository description."""
        ...
