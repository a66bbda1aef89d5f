"""User-facing error catalog.

Maps the stable ``code`` of every GittyError to a short message,
actionable suggestions and the CLI exit code. The exception message
still carries the technical detail; the catalog adds what to do next.
"""

from dataclasses import dataclass, field
from enum import Enum

from gitty.lib.exceptions import GittyError, TransactionError

# CLI exit codes
EXIT_SUCCESS = 0
EXIT_USAGE_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_PROVIDER_ERROR = 4
EXIT_INTERNAL_ERROR = 5
EXIT_PARTIAL = 6


class ErrorSeverity(str, Enum):
    """Severity level for user-facing errors."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class UserFacingError:
    """Structured error for presentation.

    Attributes:
        error_code: Code of the underlying GittyError (e.g. "INVALID_CREDENTIALS")
        message: Short description without technical detail
        suggestions: Actionable recovery hints
        exit_code: Process exit code used by the CLI
        severity: Error severity level
    """

    error_code: str
    message: str
    suggestions: list[str] = field(default_factory=list)
    exit_code: int = EXIT_INTERNAL_ERROR
    severity: ErrorSeverity = ErrorSeverity.ERROR


ERROR_CATALOG: dict[str, UserFacingError] = {
    # Input validation
    "VALIDATION_ERROR": UserFacingError(
        error_code="VALIDATION_ERROR",
        message="The request contains invalid values.",
        suggestions=["Check the option names and values and try again."],
        exit_code=EXIT_VALIDATION_ERROR,
    ),
    "INVALID_GUIDELINES": UserFacingError(
        error_code="INVALID_GUIDELINES",
        message="No project guidelines were given.",
        suggestions=["Pass --guidelines TEXT or -f FILE describing the project."],
        exit_code=EXIT_VALIDATION_ERROR,
    ),
    "MISSING_NAME": UserFacingError(
        error_code="MISSING_NAME",
        message="A repository name is required.",
        suggestions=["Give the repository name as the first argument of create-repo."],
        exit_code=EXIT_VALIDATION_ERROR,
    ),
    "MISSING_CREDENTIALS": UserFacingError(
        error_code="MISSING_CREDENTIALS",
        message="No GitHub access token is configured.",
        suggestions=["Set GITHUB_TOKEN in the environment or in .env."],
        exit_code=EXIT_CONFIG_ERROR,
    ),
    # Configuration and providers
    "STORAGE_ERROR": UserFacingError(
        error_code="STORAGE_ERROR",
        message="The provider configuration could not be read or written.",
        suggestions=[
            "Check permissions on GITTY_DATA_DIR.",
            "Run 'gitty providers reset' to restore the default configuration.",
        ],
        exit_code=EXIT_CONFIG_ERROR,
        severity=ErrorSeverity.CRITICAL,
    ),
    "UNKNOWN_PROVIDER": UserFacingError(
        error_code="UNKNOWN_PROVIDER",
        message="That AI provider does not exist.",
        suggestions=["Run 'gitty providers list' to see the available providers."],
        exit_code=EXIT_VALIDATION_ERROR,
    ),
    "UNSUPPORTED_OPERATION": UserFacingError(
        error_code="UNSUPPORTED_OPERATION",
        message="The active AI provider does not support this operation.",
        suggestions=["Activate another provider with 'gitty providers activate ID'."],
        exit_code=EXIT_CONFIG_ERROR,
    ),
    "PROVIDER_CAPABILITY": UserFacingError(
        error_code="PROVIDER_CAPABILITY",
        message="The active AI provider cannot plan repositories (chat is required).",
        suggestions=["Activate a provider that supports chat, such as ollama or lm-studio."],
        exit_code=EXIT_CONFIG_ERROR,
    ),
    # Backends
    "BACKEND_UNREACHABLE": UserFacingError(
        error_code="BACKEND_UNREACHABLE",
        message="The AI backend could not be reached.",
        suggestions=[
            "Make sure the backend is running.",
            "Check the endpoint with 'gitty providers configure ID --endpoint URL'.",
        ],
        exit_code=EXIT_PROVIDER_ERROR,
        severity=ErrorSeverity.WARNING,
    ),
    "INVALID_CREDENTIALS": UserFacingError(
        error_code="INVALID_CREDENTIALS",
        message="The AI backend rejected the credentials.",
        suggestions=["Update the key with 'gitty providers configure ID --api-key KEY'."],
        exit_code=EXIT_PROVIDER_ERROR,
    ),
    "PROVIDER_OPERATION_FAILED": UserFacingError(
        error_code="PROVIDER_OPERATION_FAILED",
        message="The AI backend returned an error.",
        suggestions=["Try again in a few moments."],
        exit_code=EXIT_PROVIDER_ERROR,
    ),
    "ENDPOINT_NOT_FOUND": UserFacingError(
        error_code="ENDPOINT_NOT_FOUND",
        message="The AI backend does not expose the requested endpoint.",
        suggestions=["Check that the configured endpoint points at the API root."],
        exit_code=EXIT_PROVIDER_ERROR,
    ),
    "INVALID_PLAN": UserFacingError(
        error_code="INVALID_PLAN",
        message="The AI backend did not return a usable file plan.",
        suggestions=["Make the guidelines more specific, or try a larger model."],
        exit_code=EXIT_PROVIDER_ERROR,
    ),
    # Code hosting
    "HOSTING_ERROR": UserFacingError(
        error_code="HOSTING_ERROR",
        message="GitHub returned an error.",
        suggestions=["Check the token scopes (repo) and try again later."],
        exit_code=EXIT_PROVIDER_ERROR,
    ),
    "REPOSITORY_NAME_EXISTS": UserFacingError(
        error_code="REPOSITORY_NAME_EXISTS",
        message="A repository with that name already exists or the name is invalid.",
        suggestions=["Choose another repository name."],
        exit_code=EXIT_VALIDATION_ERROR,
    ),
}

# Post-creation failures: the repository exists but is incomplete
TRANSACTION_ERROR = UserFacingError(
    error_code="TRANSACTION_FAILED",
    message="The repository was created but could not be fully populated.",
    suggestions=["Inspect the repository and add the missing files, or retry with a new name."],
    exit_code=EXIT_PARTIAL,
    severity=ErrorSeverity.WARNING,
)

DEFAULT_ERROR = UserFacingError(
    error_code="INTERNAL_ERROR",
    message="Something unexpected happened.",
    suggestions=["Run again with --verbose for details."],
    exit_code=EXIT_INTERNAL_ERROR,
)


def get_error_by_code(error_code: str) -> UserFacingError:
    """Get an error by its code, or DEFAULT_ERROR if not found."""
    if error_code.startswith("TRANSACTION_FAILED"):
        return TRANSACTION_ERROR
    return ERROR_CATALOG.get(error_code, DEFAULT_ERROR)


def get_error_for_exception(exc: BaseException) -> UserFacingError:
    """Get the UserFacingError for an exception (DEFAULT_ERROR if unmapped)."""
    if isinstance(exc, TransactionError):
        return TRANSACTION_ERROR
    if isinstance(exc, GittyError):
        return get_error_by_code(exc.code)
    return DEFAULT_ERROR
