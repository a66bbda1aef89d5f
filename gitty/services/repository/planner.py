"""Prompt construction and response parsing for repository file plans."""

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from gitty.lib.exceptions import PlanError
from gitty.models.chat import ChatMessage, ChatRole
from gitty.models.repository import FilePlan

logger = logging.getLogger(__name__)

PLAN_OPTIONS = {"temperature": 0.7, "max_tokens": 4000}

PLAN_SYSTEM_PROMPT = (
    "You are an expert software engineer who creates repository structures "
    "based on user guidelines. Respond only with valid JSON containing the file structure."
)

PLAN_USER_PROMPT = """Create a repository structure for the following project: {guidelines}

Include basic files, folders, and configurations needed for this type of project.
Response must be a valid JSON object with this structure:
{{
  "files": [
    {{
      "path": "file path relative to repo root",
      "content": "file content",
      "description": "brief description of the file's purpose"
    }}
  ],
  "description": "detailed project description"
}}
For a large source file you may give "prompt" (instructions for generating the file)
and "language" instead of "content"."""

_FENCED_JSON = re.compile(r"```(?:json)?[ \t]*\n(.*?)^[ \t]*```", re.DOTALL | re.MULTILINE)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def build_plan_messages(guidelines: str) -> list[ChatMessage]:
    """Conversation asking the model for a JSON file plan."""
    return [
        ChatMessage(role=ChatRole.SYSTEM, content=PLAN_SYSTEM_PROMPT),
        ChatMessage(role=ChatRole.USER, content=PLAN_USER_PROMPT.format(guidelines=guidelines)),
    ]


def fallback_guidelines(guidelines: str) -> str:
    """Simplified request used once after the regular plan attempts are exhausted."""
    return (
        f"Create a basic starter project for: {guidelines}. "
        "Keep it minimal with just essential files."
    )


def parse_plan(text: str) -> FilePlan:
    """
    Parse a planning response into a FilePlan.

    Accepts JSON inside a code fence, a bare JSON object embedded in
    prose, or a response that is entirely JSON.

    Raises:
        PlanError: If no JSON object with a non-empty ``files`` list is found
    """
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        bare = _BARE_OBJECT.search(text)
        candidate = bare.group(0) if bare else text

    try:
        data = json.loads(candidate.strip())
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse plan response: {e}")
        raise PlanError("AI response was not valid JSON") from e

    if not isinstance(data, dict) or not isinstance(data.get("files"), list):
        raise PlanError("AI response does not contain a valid files array")
    if not data["files"]:
        raise PlanError("AI response contains no files")

    try:
        return FilePlan.model_validate(data)
    except PydanticValidationError as e:
        raise PlanError(f"AI response contains an invalid file entry: {e}") from e


def default_readme(repo_name: str, description: str | None) -> str:
    """README written when the planned files could not be written at all."""
    return (
        f"# {repo_name}\n\n"
        f"{description or 'Repository created with AI assistance'}\n\n"
        "## Getting Started\n\nMore files will be added soon.\n"
    )
