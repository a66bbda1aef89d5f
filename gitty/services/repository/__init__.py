"""Repository creation workflow."""

from gitty.services.repository.orchestrator import RepositoryCreationOrchestrator
from gitty.services.repository.planner import parse_plan

__all__ = ["RepositoryCreationOrchestrator", "parse_plan"]
