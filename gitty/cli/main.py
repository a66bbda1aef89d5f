"""CLI entry point for gitty."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from gitty import __version__
from gitty.lib.config import PROVIDERS_FILE_NAME, Settings, get_settings
from gitty.lib.error_catalog import (
    EXIT_INTERNAL_ERROR,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    EXIT_USAGE_ERROR,
    EXIT_VALIDATION_ERROR,
    get_error_by_code,
    get_error_for_exception,
)
from gitty.lib.exceptions import GittyError
from gitty.lib.retry import RetryPolicy
from gitty.models.chat import ChatMessage, ChatRole
from gitty.models.repository import RepositoryCreationResult, RepositoryOptions
from gitty.services.ai_service import AIService
from gitty.services.config_store import ProviderConfigStore
from gitty.services.hosting import GitHubClient
from gitty.services.registry import ProviderRegistry
from gitty.services.repository import RepositoryCreationOrchestrator

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gitty",
        description="Create GitHub repositories and code with pluggable AI providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gitty providers list
  gitty providers activate ollama
  gitty providers configure ollama --endpoint http://localhost:11434 --model codellama
  gitty create-repo todo-api --guidelines "FastAPI todo service with SQLite"
  gitty chat "How do I reverse a list in Python?"
        """,
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory holding the provider configuration (default: ./data)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed progress during execution",
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    # providers
    providers = commands.add_parser("providers", help="Inspect and configure AI providers")
    provider_commands = providers.add_subparsers(dest="providers_command", metavar="ACTION")

    provider_commands.add_parser("list", help="List providers (active one marked with *)")
    provider_commands.add_parser("active", help="Show the active provider")
    provider_commands.add_parser("reset", help="Restore the default provider configuration")

    activate = provider_commands.add_parser("activate", help="Make a provider the active one")
    activate.add_argument("provider_id", help="Provider identifier (e.g. ollama)")

    configure = provider_commands.add_parser("configure", help="Update provider settings")
    configure.add_argument("provider_id", help="Provider identifier (e.g. ollama)")
    configure.add_argument("--endpoint", default=None, help="Backend base URL")
    configure.add_argument("--api-key", default=None, help="Backend API key")
    configure.add_argument("--model", default=None, help="Model name")
    configure.add_argument(
        "--activate", action="store_true", help="Also make this the active provider"
    )

    # create-repo
    create_repo = commands.add_parser(
        "create-repo", help="Create a GitHub repository populated by the active provider"
    )
    create_repo.add_argument("name", help="Repository name")
    source = create_repo.add_mutually_exclusive_group(required=True)
    source.add_argument("-g", "--guidelines", default=None, help="Project guidelines text")
    source.add_argument(
        "-f", "--guidelines-file", default=None, help="File containing project guidelines"
    )
    create_repo.add_argument("--description", default=None, help="Repository description")
    create_repo.add_argument("--private", action="store_true", help="Create a private repository")

    # AI operations
    chat = commands.add_parser("chat", help="Send one message to the active provider")
    chat.add_argument("message", help="Message text")
    chat.add_argument("--system", default=None, help="Optional system prompt")

    generate = commands.add_parser("generate", help="Generate code from a prompt")
    generate.add_argument("prompt", help="What the code should do")
    generate.add_argument("-l", "--language", default=None, help="Target language")

    for name, help_text in (
        ("complete", "Continue the code in a file"),
        ("explain", "Explain the code in a file"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("file", help="Source file")
        command.add_argument("-l", "--language", default=None, help="Source language")

    return parser


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "[%(asctime)s] %(levelname)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_str,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_services(settings: Settings, data_dir: str | None = None) -> tuple[ProviderRegistry, AIService]:
    """Wire the store, registry and AI service from settings."""
    path = Path(data_dir) / PROVIDERS_FILE_NAME if data_dir else settings.providers_path
    registry = ProviderRegistry(ProviderConfigStore(path))
    return registry, AIService(registry)


def build_orchestrator(settings: Settings, service: AIService) -> RepositoryCreationOrchestrator:
    """Wire the repository orchestrator from settings."""

    def hosting_factory(access_token: str) -> GitHubClient:
        return GitHubClient(
            access_token, base_url=settings.github_api_url, timeout=settings.github_timeout
        )

    return RepositoryCreationOrchestrator(
        service,
        hosting_factory=hosting_factory,
        retry_policy=RetryPolicy(
            max_retries=settings.max_retries,
            min_backoff=settings.retry_min_backoff,
            max_backoff=settings.retry_max_backoff,
        ),
        batch_size=settings.write_batch_size,
    )


async def _providers(args: argparse.Namespace, registry: ProviderRegistry) -> int:
    action = args.providers_command

    if action == "list":
        configs = await registry.list_providers()
        for provider_id, descriptor in configs.items():
            marker = "*" if descriptor.enabled else " "
            operations = ", ".join(
                sorted(op.value for op in registry.get_adapter(provider_id).supported_operations)
            )
            print(f"{marker} {provider_id:<18} {descriptor.name:<18} [{operations}]")
        return EXIT_SUCCESS

    if action == "active":
        provider_id, descriptor = await registry.get_active()
        print(f"{provider_id} ({descriptor.name})")
        if descriptor.endpoint:
            print(f"  Endpoint: {descriptor.endpoint}")
        if descriptor.model:
            print(f"  Model: {descriptor.model}")
        return EXIT_SUCCESS

    if action == "activate":
        descriptor = await registry.set_active(args.provider_id)
        print(f"Active provider: {args.provider_id} ({descriptor.name})")
        return EXIT_SUCCESS

    if action == "configure":
        fields = {
            key: value
            for key, value in (
                ("endpoint", args.endpoint),
                ("apiKey", args.api_key),
                ("model", args.model),
            )
            if value is not None
        }
        if args.activate:
            fields["enabled"] = True
        if not fields:
            print("Error: Nothing to configure (use --endpoint, --api-key or --model)", file=sys.stderr)
            return EXIT_USAGE_ERROR
        await registry.update_config(args.provider_id, fields)
        print(f"Updated {args.provider_id}")
        return EXIT_SUCCESS

    if action == "reset":
        await registry.store.reset()
        print("Provider configuration restored to defaults")
        return EXIT_SUCCESS

    print("Error: Missing providers action (list, active, activate, configure, reset)", file=sys.stderr)
    return EXIT_USAGE_ERROR


async def _create_repo(args: argparse.Namespace, settings: Settings, service: AIService) -> int:
    if args.guidelines_file:
        guidelines_path = Path(args.guidelines_file)
        if not guidelines_path.is_file():
            print(f"Error: Guidelines file not found: {args.guidelines_file}", file=sys.stderr)
            return EXIT_VALIDATION_ERROR
        guidelines = guidelines_path.read_text(encoding="utf-8")
    else:
        guidelines = args.guidelines

    orchestrator = build_orchestrator(settings, service)
    options = RepositoryOptions(
        name=args.name, description=args.description, private=args.private
    )

    try:
        result = await orchestrator.create(guidelines, options, settings.github_token or "")
    except GittyError as e:
        if e.result is not None:
            logger.debug(f"Creation result: {e.result.model_dump_json()}")
        raise

    return _print_result(result)


def _print_result(result: RepositoryCreationResult) -> int:
    repo = result.repository
    print(f"Repository: {repo.full_name}")
    if repo.html_url:
        print(f"  URL: {repo.html_url}")
    print(f"  Status: {result.ai_status}")
    for path in result.files:
        print(f"  + {path}")
    for failed in result.failed_files:
        retry = f" (retry after {failed.retry_after}s)" if failed.retry_after is not None else ""
        print(f"  ! {failed.path}: {failed.reason}{retry}")

    if result.is_success:
        return EXIT_SUCCESS

    if result.ai_error is not None:
        info = get_error_by_code(result.ai_error.code)
        print(f"Warning: {result.ai_error.message}", file=sys.stderr)
        for suggestion in info.suggestions:
            print(f"  - {suggestion}", file=sys.stderr)
    return EXIT_PARTIAL


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    registry, service = build_services(settings, args.data_dir)
    token = settings.github_token

    if args.command == "providers":
        return await _providers(args, registry)

    if args.command == "create-repo":
        return await _create_repo(args, settings, service)

    if args.command == "chat":
        messages = []
        if args.system:
            messages.append(ChatMessage(role=ChatRole.SYSTEM, content=args.system))
        messages.append(ChatMessage(role=ChatRole.USER, content=args.message))
        response = await service.chat(messages, access_token=token)
        print(response.message)
        return EXIT_SUCCESS

    if args.command == "generate":
        print(await service.generate_code(args.prompt, language=args.language, access_token=token))
        return EXIT_SUCCESS

    if args.command in ("complete", "explain"):
        source = Path(args.file)
        if not source.is_file():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return EXIT_VALIDATION_ERROR
        code = source.read_text(encoding="utf-8")
        operation = service.complete_code if args.command == "complete" else service.explain_code
        print(await operation(code, language=args.language, access_token=token))
        return EXIT_SUCCESS

    print("Error: Missing command (see --help)", file=sys.stderr)
    return EXIT_USAGE_ERROR


def _report_error(error: GittyError) -> int:
    info = get_error_for_exception(error)
    print(f"Error: {error.message}", file=sys.stderr)
    for suggestion in info.suggestions:
        print(f"  - {suggestion}", file=sys.stderr)
    return info.exit_code


def run(args: argparse.Namespace) -> int:
    """
    Run one CLI command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    settings = get_settings()
    setup_logging(args.verbose or settings.verbose)

    try:
        return asyncio.run(_dispatch(args, settings))

    except GittyError as e:
        return _report_error(e)

    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Error: Unexpected error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
