"""Request-scoped models for repository creation."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from gitty.lib.exceptions import GittyError


class TransactionStage(str, Enum):
    """Stages of the repository-creation workflow, in execution order."""

    VALIDATE_INPUT = "validate_input"
    CREATE_REPOSITORY = "create_repository"
    PLAN_FILES = "plan_files"
    WRITE_FILES = "write_files"
    FINALIZE = "finalize"


class AIStatus(str, Enum):
    """Overall outcome of a repository creation."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class RepositoryOptions(BaseModel):
    """Caller-supplied repository settings."""

    name: str | None = Field(default=None, description="Repository name")
    description: str | None = Field(default=None, description="Repository description")
    private: bool = Field(default=False, description="Create as a private repository")


class RepositoryIdentity(BaseModel):
    """Identity of a repository on the host."""

    owner: str
    name: str
    full_name: str
    html_url: str | None = None
    description: str | None = None
    default_branch: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryIdentity":
        """Build from a GitHub repository payload."""
        return cls(
            owner=data["owner"]["login"],
            name=data["name"],
            full_name=data.get("full_name") or f"{data['owner']['login']}/{data['name']}",
            html_url=data.get("html_url"),
            description=data.get("description"),
            default_branch=data.get("default_branch"),
        )


class PlanMode(str, Enum):
    """How a planned file gets its content."""

    LITERAL = "literal"
    GENERATE = "generate"


class FilePlanEntry(BaseModel):
    """
    One file proposed by the planning call.

    ``content`` holds the file body for literal entries and the
    generation instruction for generate entries.
    """

    path: str = Field(default="")
    content: str = Field(default="")
    mode: PlanMode = Field(default=PlanMode.LITERAL)
    description: str | None = None
    language: str | None = None

    model_config = {
        "use_enum_values": True,
    }

    @model_validator(mode="before")
    @classmethod
    def accept_prompt_key(cls, data: Any) -> Any:
        """Entries carrying a ``prompt`` instead of ``content`` are generate entries."""
        if isinstance(data, dict) and data.get("prompt") and not data.get("content"):
            data = {**data, "content": data["prompt"], "mode": PlanMode.GENERATE.value}
        if isinstance(data, dict) and data.get("content") is None:
            data = {**data, "content": ""}
        return data


class FilePlan(BaseModel):
    """Ordered list of planned files plus an optional project description."""

    files: list[FilePlanEntry]
    description: str | None = None


class FailedFile(BaseModel):
    """A planned file that could not be written."""

    path: str
    reason: str
    recoverable: bool = False
    retry_after: int | None = None


class AIErrorInfo(BaseModel):
    """Serializable summary of the error attached to a result."""

    code: str
    message: str
    stage: str | None = None
    recoverable: bool = False
    retry_after: int | None = None

    @classmethod
    def from_exception(cls, error: Exception, stage: str | None = None) -> "AIErrorInfo":
        if isinstance(error, GittyError):
            return cls(
                code=error.code,
                message=error.message,
                stage=stage,
                recoverable=error.recoverable,
                retry_after=error.retry_after,
            )
        return cls(code="INTERNAL_ERROR", message=str(error), stage=stage)


class RepositoryCreationResult(BaseModel):
    """
    Outcome of a repository creation.

    Status rules:
        success - repository created and every planned file written
        partial - repository exists, something after creation failed
        failed  - the repository itself was not created
    """

    repository: RepositoryIdentity | None = None
    ai_status: AIStatus
    ai_error: AIErrorInfo | None = None
    files: list[str] = Field(default_factory=list, description="Paths written")
    failed_files: list[FailedFile] = Field(default_factory=list)
    transaction_stage: TransactionStage = TransactionStage.FINALIZE

    model_config = {
        "use_enum_values": True,
    }

    @property
    def full_name(self) -> str | None:
        return self.repository.full_name if self.repository else None

    @property
    def is_success(self) -> bool:
        return self.ai_status == AIStatus.SUCCESS

    @property
    def is_partial(self) -> bool:
        return self.ai_status == AIStatus.PARTIAL
