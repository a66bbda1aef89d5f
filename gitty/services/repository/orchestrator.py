"""Repository creation orchestrator.

Turns natural-language guidelines into a populated GitHub repository:
validate, create the repository, ask the active provider for a file
plan, write the files in batches, then report the outcome.
"""

import asyncio
import logging
from pathlib import PurePosixPath
from typing import Any, Callable, Mapping

from gitty.lib.exceptions import (
    GittyError,
    HostingError,
    InvalidCredentialsError,
    InvalidGuidelinesError,
    MissingCredentialsError,
    MissingNameError,
    ProviderCapabilityError,
    RepositoryNameExistsError,
    TransactionError,
    UnsupportedOperationError,
    ValidationError,
)
from gitty.lib.retry import RetryPolicy
from gitty.lib.text import truncate
from gitty.models.chat import CanonicalOperation
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
from gitty.services.ai_service import AIService
from gitty.services.hosting import CodeHostingClient, GitHubClient
from gitty.services.repository.planner import (
    PLAN_OPTIONS,
    build_plan_messages,
    default_readme,
    fallback_guidelines,
    parse_plan,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
PARTIAL_PREFIX = "[PARTIAL] "

# Host statuses worth retrying besides 429/5xx
_TRANSIENT_HOST_STATUSES = frozenset({403, 429})


def is_transient_host_error(error: BaseException) -> bool:
    """Network failures, 403, 429 and 5xx; never 422."""
    if not isinstance(error, HostingError) or isinstance(error, RepositoryNameExistsError):
        return False
    status = error.status_code
    return status is None or status in _TRANSIENT_HOST_STATUSES or status >= 500


def is_retryable_ai_error(error: BaseException) -> bool:
    """AI failures other than bad credentials, missing capabilities or bad input."""
    return isinstance(error, GittyError) and not isinstance(
        error, (InvalidCredentialsError, UnsupportedOperationError, ValidationError)
    )


def is_safe_path(path: str) -> bool:
    """Relative, non-empty paths that stay inside the repository."""
    if not path or not path.strip():
        return False
    if path.startswith(("/", "\\")):
        return False
    return ".." not in PurePosixPath(path.replace("\\", "/")).parts


def default_description(guidelines: str) -> str:
    return f"Project created based on: {truncate(guidelines, 100)}"


class RepositoryCreationOrchestrator:
    """
    Runs the repository creation workflow.

    Stages:
        1. validate_input    - guidelines, name and credentials present
        2. create_repository - repository created on the host (auto-initialized)
        3. plan_files        - chat call returning a JSON file plan
        4. write_files       - planned files written in concurrent batches
        5. finalize          - description updated, status computed

    Errors before the repository exists are raised. Once it exists, the
    result is always returned, with ``ai_status`` partial when anything
    failed afterwards.
    """

    def __init__(
        self,
        ai_service: AIService,
        hosting_factory: Callable[[str], CodeHostingClient] = GitHubClient,
        retry_policy: RetryPolicy | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the orchestrator.

        Args:
            ai_service: Facade routing AI calls to the active provider
            hosting_factory: Builds a hosting client from an access token
            retry_policy: Backoff for host and planning calls
            batch_size: Files written concurrently per batch
        """
        self.ai_service = ai_service
        self.hosting_factory = hosting_factory
        self.retry_policy = retry_policy or RetryPolicy()
        self.batch_size = max(1, batch_size)

    async def create(
        self,
        guidelines: str,
        options: RepositoryOptions | Mapping[str, Any],
        access_token: str,
        generation_options: Mapping[str, Any] | None = None,
    ) -> RepositoryCreationResult:
        """
        Create a repository populated from ``guidelines``.

        Args:
            guidelines: Natural-language description of the project
            options: Repository name, description and visibility
            access_token: GitHub access token of the caller
            generation_options: Options passed to per-file code generation

        Returns:
            RepositoryCreationResult (success or partial)

        Raises:
            ValidationError: Missing guidelines, name or credentials
            ProviderCapabilityError: Active provider cannot chat
            HostingError: Repository creation failed; ``error.result``
                holds a failed RepositoryCreationResult
        """
        if not isinstance(options, RepositoryOptions):
            options = RepositoryOptions.model_validate(dict(options))

        self._validate_input(guidelines, options, access_token)
        await self._check_capability()

        host = self.hosting_factory(access_token)
        description = options.description or default_description(guidelines)

        logger.info(f"Starting AI repository creation: {options.name}")
        try:
            repo = await self._create_repository(host, options, description)
        except GittyError as e:
            logger.error(f"Repository creation failed: {e.message}")
            e.result = RepositoryCreationResult(
                ai_status=AIStatus.FAILED,
                ai_error=AIErrorInfo.from_exception(e, TransactionStage.CREATE_REPOSITORY.value),
                transaction_stage=TransactionStage.CREATE_REPOSITORY,
            )
            raise

        description = repo.description or description

        logger.info(f"Planning files for {repo.full_name}")
        try:
            plan = await self._plan_files(guidelines, access_token)
        except Exception as e:
            return await self._stage_failed(
                host, repo, description, TransactionStage.PLAN_FILES, e, [], []
            )

        logger.info(f"Writing {len(plan.files)} files to {repo.full_name}")
        written, failed = await self._write_files(
            host, repo, plan, access_token, generation_options
        )
        if not written:
            logger.warning(f"No planned file could be written to {repo.full_name}")
            written = await self._write_default_readme(host, repo, plan.description)
            # The fallback README stands in for a failed planned one
            failed = [f for f in failed if f.path not in written]

        return await self._finalize(host, repo, plan, description, written, failed)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _validate_input(
        self, guidelines: str, options: RepositoryOptions, access_token: str
    ) -> None:
        if not guidelines or not guidelines.strip():
            raise InvalidGuidelinesError()
        if not options.name or not options.name.strip():
            raise MissingNameError()
        if not access_token:
            raise MissingCredentialsError()

    async def _check_capability(self) -> None:
        try:
            await self.ai_service.resolve(CanonicalOperation.CHAT)
        except UnsupportedOperationError as e:
            raise ProviderCapabilityError(e.provider) from e

    async def _create_repository(
        self, host: CodeHostingClient, options: RepositoryOptions, description: str
    ) -> RepositoryIdentity:
        async for attempt in self.retry_policy.retrying(
            is_transient_host_error, f"Create repository {options.name}"
        ):
            with attempt:
                return await host.create_repository(
                    options.name.strip(), description, private=options.private
                )

    async def _plan_files(self, guidelines: str, access_token: str) -> FilePlan:
        try:
            async for attempt in self.retry_policy.retrying(
                is_retryable_ai_error, "Plan repository files"
            ):
                with attempt:
                    return await self._request_plan(guidelines, access_token)
        except GittyError as e:
            if not is_retryable_ai_error(e):
                raise
            logger.warning(f"Planning failed ({e.message}), trying simplified prompt")

        plan = await self._request_plan(fallback_guidelines(guidelines), access_token)
        logger.info("Simplified planning prompt succeeded")
        return plan

    async def _request_plan(self, guidelines: str, access_token: str) -> FilePlan:
        response = await self.ai_service.chat(
            build_plan_messages(guidelines), options=PLAN_OPTIONS, access_token=access_token
        )
        return parse_plan(response.message)

    async def _write_files(
        self,
        host: CodeHostingClient,
        repo: RepositoryIdentity,
        plan: FilePlan,
        access_token: str,
        generation_options: Mapping[str, Any] | None,
    ) -> tuple[list[str], list[FailedFile]]:
        written: list[str] = []
        failed: list[FailedFile] = []

        for start in range(0, len(plan.files), self.batch_size):
            batch = plan.files[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(
                    self._write_entry(host, repo, entry, access_token, generation_options)
                    for entry in batch
                )
            )
            for entry, outcome in zip(batch, outcomes):
                if outcome is None:
                    written.append(entry.path.strip())
                else:
                    failed.append(outcome)

        return written, failed

    async def _write_entry(
        self,
        host: CodeHostingClient,
        repo: RepositoryIdentity,
        entry: FilePlanEntry,
        access_token: str,
        generation_options: Mapping[str, Any] | None,
    ) -> FailedFile | None:
        """Write one planned file; returns a FailedFile instead of raising."""
        path = entry.path.strip()
        if not is_safe_path(path):
            logger.warning(f"Skipping unsafe planned path: {entry.path!r}")
            return FailedFile(path=entry.path, reason="Unsafe or empty file path")

        try:
            content = entry.content
            if entry.mode == PlanMode.GENERATE:
                content = await self.ai_service.generate_code(
                    entry.content,
                    language=entry.language,
                    options=generation_options,
                    access_token=access_token,
                )

            async for attempt in self.retry_policy.retrying(
                is_transient_host_error, f"Write {path}"
            ):
                with attempt:
                    await host.write_file(repo, path, content)
        except Exception as e:
            reason = e.message if isinstance(e, GittyError) else str(e)
            logger.warning(f"Failed to write {path}: {reason}")
            return FailedFile(
                path=path,
                reason=reason,
                recoverable=isinstance(e, GittyError) and e.recoverable,
                retry_after=e.retry_after if isinstance(e, GittyError) else None,
            )

        logger.debug(f"Wrote {path}")
        return None

    async def _write_default_readme(
        self, host: CodeHostingClient, repo: RepositoryIdentity, description: str | None
    ) -> list[str]:
        try:
            async for attempt in self.retry_policy.retrying(
                is_transient_host_error, "Write fallback README", max_retries=2
            ):
                with attempt:
                    await host.write_file(
                        repo, "README.md", default_readme(repo.name, description), "Add README.md"
                    )
        except GittyError as e:
            logger.error(f"Failed to write fallback README: {e.message}")
            return []
        return ["README.md"]

    async def _finalize(
        self,
        host: CodeHostingClient,
        repo: RepositoryIdentity,
        plan: FilePlan,
        description: str,
        written: list[str],
        failed: list[FailedFile],
    ) -> RepositoryCreationResult:
        status = AIStatus.PARTIAL if failed else AIStatus.SUCCESS
        new_description = plan.description or description

        if status == AIStatus.PARTIAL:
            logger.warning(
                f"{repo.full_name}: {len(failed)} of {len(plan.files)} files failed"
            )
            new_description = PARTIAL_PREFIX + new_description
        else:
            logger.info(f"Successfully created AI repository: {repo.full_name}")

        if new_description != repo.description:
            await self._update_description(host, repo, new_description)

        return RepositoryCreationResult(
            repository=repo,
            ai_status=status,
            files=written,
            failed_files=failed,
            transaction_stage=TransactionStage.FINALIZE,
        )

    async def _stage_failed(
        self,
        host: CodeHostingClient,
        repo: RepositoryIdentity,
        description: str,
        stage: TransactionStage,
        error: Exception,
        written: list[str],
        failed: list[FailedFile],
    ) -> RepositoryCreationResult:
        if isinstance(error, GittyError):
            logger.error(f"{stage.value} failed for {repo.full_name}: {error.message}")
        else:
            logger.exception(f"{stage.value} failed for {repo.full_name}")

        transaction_error = TransactionError(stage.value, error)
        await self._update_description(host, repo, PARTIAL_PREFIX + description)

        return RepositoryCreationResult(
            repository=repo,
            ai_status=AIStatus.PARTIAL,
            ai_error=AIErrorInfo.from_exception(transaction_error, stage.value),
            files=written,
            failed_files=failed,
            transaction_stage=stage,
        )

    async def _update_description(
        self, host: CodeHostingClient, repo: RepositoryIdentity, description: str
    ) -> None:
        """Best effort: a failed description update never changes the outcome."""
        try:
            await host.update_description(repo, description)
        except GittyError as e:
            logger.warning(f"Could not update description of {repo.full_name}: {e.message}")
