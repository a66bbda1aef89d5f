"""Exception hierarchy for gitty.

All custom exceptions inherit from GittyError to enable selective
catching at different levels. Every error carries a stable ``code``
that callers (CLI, HTTP layers) can map to a user-facing message.

Hierarchy:
    GittyError (base)
    ├── ValidationError - Input validation failures
    │   ├── InvalidGuidelinesError
    │   ├── MissingNameError
    │   └── MissingCredentialsError
    ├── StorageError - Provider configuration document read/write failures
    ├── UnknownProviderError - Provider id not registered
    ├── UnsupportedOperationError - Adapter lacks a canonical operation
    │   └── ProviderCapabilityError - Orchestrator requirement not met
    ├── ProviderError - LLM backend communication errors
    │   ├── BackendUnreachableError
    │   ├── InvalidCredentialsError
    │   └── ProviderOperationError
    │       └── EndpointNotFoundError
    ├── PlanError - Planning response was not a usable file plan
    ├── HostingError - Code-hosting API errors
    │   └── RepositoryNameExistsError
    └── TransactionError - Failure after the repository was created
"""

# Host statuses after which retrying is meaningful
RECOVERABLE_STATUSES = frozenset({429, 500, 503})
DEFAULT_RETRY_AFTER = 30


class GittyError(Exception):
    """
    Base exception for all gitty errors.

    Catching this will catch all custom exceptions from this package.
    """

    code = "GITTY_ERROR"

    # Failed RepositoryCreationResult, attached when repository creation fails
    result = None

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        """Whether retrying the same request later is meaningful."""
        return False

    @property
    def retry_after(self) -> int | None:
        """Suggested delay in seconds before retrying (recoverable errors only)."""
        return None


class ValidationError(GittyError):
    """
    Input validation error.

    Raised when caller-supplied data fails validation rules.

    CLI Exit Code: 3
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidGuidelinesError(ValidationError):
    """Repository guidelines are empty."""

    code = "INVALID_GUIDELINES"

    def __init__(self, message: str = "Repository creation guidelines are required"):
        super().__init__(message, field="guidelines")


class MissingNameError(ValidationError):
    """Target repository name is absent."""

    code = "MISSING_NAME"

    def __init__(self, message: str = "Repository name is required"):
        super().__init__(message, field="name")


class MissingCredentialsError(ValidationError):
    """No code-hosting access credential was supplied."""

    code = "MISSING_CREDENTIALS"

    def __init__(self, message: str = "GitHub access token is required"):
        super().__init__(message, field="access_token")


class StorageError(GittyError):
    """
    Provider configuration document read/write error.

    CLI Exit Code: 2

    Attributes:
        path: Path that caused the error
        operation: Operation that failed (read, write)
    """

    code = "STORAGE_ERROR"

    def __init__(self, message: str, path: str | None = None, operation: str | None = None):
        self.path = path
        self.operation = operation
        super().__init__(message)


class UnknownProviderError(GittyError):
    """Raised when a provider id is not registered."""

    code = "UNKNOWN_PROVIDER"

    def __init__(self, provider_id: str, available: list[str] | None = None):
        self.provider_id = provider_id
        message = f"Invalid provider ID: {provider_id}"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)


class UnsupportedOperationError(GittyError):
    """Raised when the active adapter does not implement an operation."""

    code = "UNSUPPORTED_OPERATION"

    def __init__(self, provider: str, operation: str, message: str | None = None):
        self.provider = provider
        self.operation = operation
        super().__init__(message or f"Provider {provider} does not support {operation}")


class ProviderCapabilityError(UnsupportedOperationError):
    """
    Raised when the active provider cannot serve repository creation.

    Repository planning needs chat; this is checked before any
    repository mutation happens.
    """

    code = "PROVIDER_CAPABILITY"

    def __init__(self, provider: str, operation: str = "chat"):
        super().__init__(
            provider,
            operation,
            message=(
                f"AI provider {provider} does not support the {operation} "
                "functionality required for repository creation"
            ),
        )


class ProviderError(GittyError):
    """
    LLM provider communication error.

    CLI Exit Code: 4

    Attributes:
        provider: Display name of the backend that failed
        original_error: Original exception if wrapping
    """

    code = "PROVIDER_ERROR"

    def __init__(
        self, message: str, provider: str = "unknown", original_error: Exception | None = None
    ):
        self.provider = provider
        self.original_error = original_error
        super().__init__(f"[{provider}] {message}")


class BackendUnreachableError(ProviderError):
    """Connection refused or timed out."""

    code = "BACKEND_UNREACHABLE"

    def __init__(self, provider: str, original_error: Exception | None = None):
        super().__init__(
            f"Could not connect to {provider}. Make sure {provider} is running and accessible.",
            provider=provider,
            original_error=original_error,
        )


class InvalidCredentialsError(ProviderError):
    """Backend rejected the credentials (HTTP 401) or none were configured."""

    code = "INVALID_CREDENTIALS"


class ProviderOperationError(ProviderError):
    """
    Any other transport or HTTP failure from a backend.

    Attributes:
        status_code: HTTP status returned by the backend, if any
    """

    code = "PROVIDER_OPERATION_FAILED"

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider=provider, original_error=original_error)


class EndpointNotFoundError(ProviderOperationError):
    """Backend answered 404 for the requested endpoint."""

    code = "ENDPOINT_NOT_FOUND"


class PlanError(GittyError):
    """The planning response could not be parsed into a file plan."""

    code = "INVALID_PLAN"


class HostingError(GittyError):
    """
    Code-hosting API error.

    Attributes:
        status_code: HTTP status reported by the host (None for network errors)
        host_retry_after: Retry-After value reported by the host, if any
    """

    code = "HOSTING_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        host_retry_after: int | None = None,
        original_error: Exception | None = None,
    ):
        self.status_code = status_code
        self.host_retry_after = host_retry_after
        self.original_error = original_error
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        return self.status_code in RECOVERABLE_STATUSES

    @property
    def retry_after(self) -> int | None:
        if not self.recoverable:
            return None
        if self.host_retry_after is None:
            return DEFAULT_RETRY_AFTER
        return self.host_retry_after


class RepositoryNameExistsError(HostingError):
    """Host reported 422: the name is taken or invalid. Never recoverable."""

    code = "REPOSITORY_NAME_EXISTS"

    def __init__(self, name: str, original_error: Exception | None = None):
        self.name = name
        super().__init__(
            f"Repository name '{name}' may already exist or contain invalid characters",
            status_code=422,
            original_error=original_error,
        )


class TransactionError(GittyError):
    """
    Failure of a stage that ran after the repository was created.

    The code is ``TRANSACTION_FAILED_<STAGE>`` so callers can tell
    "nothing happened" apart from "repository exists but is incomplete".

    Attributes:
        stage: Name of the stage that failed (e.g. "plan_files")
        cause: The underlying exception
    """

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        self.code = f"TRANSACTION_FAILED_{stage.upper()}"
        super().__init__(f"Transaction failed during {stage}: {cause}")

    @property
    def recoverable(self) -> bool:
        return isinstance(self.cause, GittyError) and self.cause.recoverable

    @property
    def retry_after(self) -> int | None:
        if isinstance(self.cause, GittyError):
            return self.cause.retry_after
        return None
