"""Integration tests for the repository creation workflow."""

import asyncio
import json
from collections import Counter

import pytest

from gitty.lib.exceptions import (
    HostingError,
    InvalidCredentialsError,
    InvalidGuidelinesError,
    MissingCredentialsError,
    MissingNameError,
    ProviderCapabilityError,
    RepositoryNameExistsError,
)
from gitty.lib.retry import RetryPolicy
from gitty.models.chat import CanonicalOperation, ChatResponse
from gitty.models.provider import ProviderKind
from gitty.models.repository import AIStatus, RepositoryIdentity, TransactionStage
from gitty.services.ai_service import AIService
from gitty.services.llm import CustomAdapter, ProviderAdapter
from gitty.services.registry import ProviderRegistry
from gitty.services.repository import RepositoryCreationOrchestrator

GUIDELINES = "A small Python CLI that prints the weather"


class ScriptedAdapter(ProviderAdapter):
    """Adapter answering chat from a script; items that are exceptions are raised."""

    kind = ProviderKind.GITHUB_COPILOT
    display_name = "Scripted"
    supported_operations = frozenset(CanonicalOperation)

    def __init__(self, replies):
        super().__init__()
        self.replies = list(replies)
        self.chat_calls = []
        self.generate_calls = []

    async def chat(self, messages, options, config, access_token=None):
        self.chat_calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ChatResponse(message=reply, model="scripted")

    async def generate_code(self, prompt, language, context, options, config, access_token=None):
        self.generate_calls.append((prompt, language))
        return f"# generated {language}: {prompt}"


class FakeHost:
    """In-memory code host with scripted failures."""

    def __init__(self, create_errors=None, fail_paths=None):
        self.create_errors = list(create_errors or [])
        self.fail_paths = fail_paths or {}
        self.create_calls = 0
        self.created = None
        self.files = {}
        self.write_attempts = Counter()
        self.descriptions = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def create_repository(self, name, description, private=False):
        self.create_calls += 1
        if self.create_errors:
            raise self.create_errors.pop(0)
        self.created = {"name": name, "description": description, "private": private}
        return RepositoryIdentity(
            owner="octo",
            name=name,
            full_name=f"octo/{name}",
            html_url=f"https://github.com/octo/{name}",
            description=description,
        )

    async def write_file(self, repo, path, content, message=None):
        self.write_attempts[path] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if path in self.fail_paths:
                raise self.fail_paths[path]
            self.files[path] = content
            return f"sha-{path}"
        finally:
            self.in_flight -= 1

    async def update_description(self, repo, description):
        self.descriptions.append(description)


def plan_json(paths, description="Weather CLI"):
    return json.dumps(
        {
            "files": [
                {"path": path, "content": f"content of {path}", "description": "file"}
                for path in paths
            ],
            "description": description,
        }
    )


FIVE_FILES = ["README.md", "setup.py", "weather/cli.py", "weather/api.py", "tests/test_cli.py"]


@pytest.fixture
def make_orchestrator(store):
    """Build an orchestrator around a scripted adapter and a fake host."""

    def _make(replies, host=None, batch_size=5):
        adapter = ScriptedAdapter(replies)
        registry = ProviderRegistry(
            store,
            {ProviderKind.GITHUB_COPILOT: adapter, ProviderKind.CUSTOM: CustomAdapter()},
        )
        host = host or FakeHost()
        orchestrator = RepositoryCreationOrchestrator(
            AIService(registry),
            hosting_factory=lambda token: host,
            retry_policy=RetryPolicy.no_wait(max_retries=3),
            batch_size=batch_size,
        )
        return orchestrator, adapter, host

    return _make


class TestSuccessfulCreation:
    """Happy-path tests."""

    @pytest.mark.asyncio
    async def test_all_files_written(self, make_orchestrator):
        orchestrator, adapter, host = make_orchestrator([plan_json(FIVE_FILES)])

        result = await orchestrator.create(GUIDELINES, {"name": "weather"}, "gho_token")

        assert result.ai_status == AIStatus.SUCCESS
        assert result.is_success
        assert result.full_name == "octo/weather"
        assert result.files == FIVE_FILES
        assert result.failed_files == []
        assert result.ai_error is None
        assert result.transaction_stage == TransactionStage.FINALIZE
        assert host.files["weather/cli.py"] == "content of weather/cli.py"
        assert host.descriptions == ["Weather CLI"]

    @pytest.mark.asyncio
    async def test_defaults_public_and_derived_description(self, make_orchestrator):
        orchestrator, _, host = make_orchestrator([plan_json(["README.md"])])
        guidelines = "x" * 150

        await orchestrator.create(guidelines, {"name": "demo"}, "t")

        assert host.created["private"] is False
        assert host.created["description"] == "Project created based on: " + "x" * 100 + "..."

    @pytest.mark.asyncio
    async def test_fenced_plan_accepted(self, make_orchestrator):
        reply = "Here is the plan:\n```json\n" + plan_json(["README.md"]) + "\n```"
        orchestrator, _, host = make_orchestrator([reply])

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.is_success
        assert list(host.files) == ["README.md"]

    @pytest.mark.asyncio
    async def test_generate_entries_use_generate_code(self, make_orchestrator):
        plan = json.dumps(
            {
                "files": [
                    {"path": "main.py", "prompt": "print the weather", "language": "python"},
                    {"path": "README.md", "content": "# Weather"},
                ]
            }
        )
        orchestrator, adapter, host = make_orchestrator([plan])

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.is_success
        assert adapter.generate_calls == [("print the weather", "python")]
        assert host.files["main.py"] == "# generated python: print the weather"
        assert host.files["README.md"] == "# Weather"

    @pytest.mark.asyncio
    async def test_batches_bound_concurrency(self, make_orchestrator):
        orchestrator, _, host = make_orchestrator([plan_json(FIVE_FILES)], batch_size=2)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.files == FIVE_FILES
        assert host.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_transient_create_failures_retried(self, make_orchestrator):
        host = FakeHost(create_errors=[HostingError("busy", status_code=503)] * 2)
        orchestrator, _, host = make_orchestrator([plan_json(["README.md"])], host=host)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.is_success
        assert host.create_calls == 3


class TestValidation:
    """Errors raised before anything is created."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "guidelines, options, token, error",
        [
            ("", {"name": "demo"}, "t", InvalidGuidelinesError),
            ("   ", {"name": "demo"}, "t", InvalidGuidelinesError),
            (GUIDELINES, {"name": ""}, "t", MissingNameError),
            (GUIDELINES, {}, "t", MissingNameError),
            (GUIDELINES, {"name": "demo"}, "", MissingCredentialsError),
        ],
    )
    async def test_invalid_input(self, make_orchestrator, guidelines, options, token, error):
        orchestrator, adapter, host = make_orchestrator([])

        with pytest.raises(error):
            await orchestrator.create(guidelines, options, token)

        assert host.create_calls == 0
        assert adapter.chat_calls == []

    @pytest.mark.asyncio
    async def test_provider_without_chat(self, make_orchestrator):
        orchestrator, _, host = make_orchestrator([])
        await orchestrator.ai_service.registry.set_active("custom")

        with pytest.raises(ProviderCapabilityError) as exc_info:
            await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert "Custom Provider" in exc_info.value.message
        assert host.create_calls == 0


class TestCreateFailure:
    """CREATE_REPOSITORY failures are raised with a failed result."""

    @pytest.mark.asyncio
    async def test_name_exists(self, make_orchestrator):
        host = FakeHost(create_errors=[RepositoryNameExistsError("demo")])
        orchestrator, adapter, host = make_orchestrator([plan_json(["README.md"])], host=host)

        with pytest.raises(RepositoryNameExistsError) as exc_info:
            await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        result = exc_info.value.result
        assert result.ai_status == AIStatus.FAILED
        assert result.repository is None
        assert result.failed_files == []
        assert result.ai_error.code == "REPOSITORY_NAME_EXISTS"
        assert result.ai_error.recoverable is False
        assert host.create_calls == 1
        assert adapter.chat_calls == []

    @pytest.mark.asyncio
    async def test_persistent_outage(self, make_orchestrator):
        host = FakeHost(create_errors=[HostingError("down", status_code=500)] * 10)
        orchestrator, _, host = make_orchestrator([], host=host)

        with pytest.raises(HostingError) as exc_info:
            await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert exc_info.value.result.ai_status == AIStatus.FAILED
        assert exc_info.value.result.ai_error.recoverable is True
        assert host.create_calls == 4


class TestPartialResults:
    """Failures after the repository exists are returned, not raised."""

    @pytest.mark.asyncio
    async def test_one_file_fails_out_of_five(self, make_orchestrator):
        host = FakeHost(fail_paths={"weather/cli.py": HostingError("bad", status_code=400)})
        orchestrator, _, host = make_orchestrator([plan_json(FIVE_FILES)], host=host)

        result = await orchestrator.create(GUIDELINES, {"name": "weather"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.repository.full_name == "octo/weather"
        assert result.files == ["README.md", "setup.py", "weather/api.py", "tests/test_cli.py"]
        assert [f.path for f in result.failed_files] == ["weather/cli.py"]
        assert result.failed_files[0].recoverable is False
        assert host.write_attempts["weather/cli.py"] == 1
        assert host.descriptions == ["[PARTIAL] Weather CLI"]

    @pytest.mark.asyncio
    async def test_503_on_one_write_is_recoverable(self, make_orchestrator):
        host = FakeHost(
            fail_paths={"setup.py": HostingError("unavailable", status_code=503)}
        )
        orchestrator, _, host = make_orchestrator([plan_json(FIVE_FILES)], host=host)

        result = await orchestrator.create(GUIDELINES, {"name": "weather"}, "t")

        failed = result.failed_files
        assert result.ai_status == AIStatus.PARTIAL
        assert len(failed) == 1
        assert failed[0].path == "setup.py"
        assert failed[0].recoverable is True
        assert failed[0].retry_after == 30
        assert host.write_attempts["setup.py"] == 4
        assert len(result.files) == 4

    @pytest.mark.asyncio
    async def test_unsafe_paths_recorded_without_writing(self, make_orchestrator):
        plan = plan_json(["../escape.txt", "/etc/passwd", "ok.txt"])
        orchestrator, _, host = make_orchestrator([plan])

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.files == ["ok.txt"]
        assert [f.path for f in result.failed_files] == ["../escape.txt", "/etc/passwd"]
        assert set(host.write_attempts) == {"ok.txt"}

    @pytest.mark.asyncio
    async def test_every_file_failing_writes_default_readme(self, make_orchestrator):
        bad = HostingError("bad", status_code=400)
        host = FakeHost(fail_paths={"app.py": bad, "lib.py": bad})
        orchestrator, _, host = make_orchestrator(
            [plan_json(["app.py", "lib.py"], description="Demo tool")], host=host
        )

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.ai_error is None
        assert result.files == ["README.md"]
        assert [f.path for f in result.failed_files] == ["app.py", "lib.py"]
        assert host.files["README.md"].startswith("# demo\n\nDemo tool\n")

    @pytest.mark.asyncio
    async def test_default_readme_failure_leaves_nothing_written(self, make_orchestrator):
        bad = HostingError("bad", status_code=400)
        host = FakeHost(fail_paths={"app.py": bad, "README.md": bad})
        orchestrator, _, host = make_orchestrator([plan_json(["app.py"])], host=host)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.files == []
        assert [f.path for f in result.failed_files] == ["app.py"]
        assert host.write_attempts["README.md"] == 1

    @pytest.mark.asyncio
    async def test_planning_falls_back_to_simplified_prompt(self, make_orchestrator):
        replies = ["not json at all"] * 4 + [plan_json(["README.md"])]
        orchestrator, adapter, _ = make_orchestrator(replies)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.is_success
        assert len(adapter.chat_calls) == 5
        last_prompt = adapter.chat_calls[-1][-1].content
        assert f"Create a basic starter project for: {GUIDELINES}" in last_prompt

    @pytest.mark.asyncio
    async def test_planning_exhausted(self, make_orchestrator):
        orchestrator, adapter, host = make_orchestrator(["{}"] * 5)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.repository is not None
        assert result.transaction_stage == TransactionStage.PLAN_FILES
        assert result.ai_error.code == "TRANSACTION_FAILED_PLAN_FILES"
        assert result.files == []
        assert host.files == {}
        assert host.descriptions[-1].startswith("[PARTIAL] ")

    @pytest.mark.asyncio
    async def test_invalid_credentials_not_retried(self, make_orchestrator):
        error = InvalidCredentialsError("bad token", provider="Scripted")
        orchestrator, adapter, _ = make_orchestrator([error])

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.ai_error.code == "TRANSACTION_FAILED_PLAN_FILES"
        assert len(adapter.chat_calls) == 1

    @pytest.mark.asyncio
    async def test_description_update_failure_is_ignored(self, make_orchestrator):
        class StubbornHost(FakeHost):
            async def update_description(self, repo, description):
                raise HostingError("nope", status_code=500)

        host = StubbornHost(fail_paths={"a.txt": HostingError("bad", status_code=400)})
        orchestrator, _, _ = make_orchestrator([plan_json(["a.txt", "b.txt"])], host=host)

        result = await orchestrator.create(GUIDELINES, {"name": "demo"}, "t")

        assert result.ai_status == AIStatus.PARTIAL
        assert result.files == ["b.txt"]
