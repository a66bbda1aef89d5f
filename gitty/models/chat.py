"""Canonical operations and chat message types."""

from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, Field


class CanonicalOperation(str, Enum):
    """Backend-agnostic capabilities an adapter may implement."""

    GENERATE_CODE = "generate_code"
    COMPLETE_CODE = "complete_code"
    EXPLAIN_CODE = "explain_code"
    CHAT = "chat"

    @property
    def label(self) -> str:
        """Human-readable name used in error messages."""
        return self.value.replace("_", " ")


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of a conversation. Lists of messages are oldest first."""

    role: ChatRole
    content: str

    model_config = {
        "use_enum_values": True,
    }

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatResponse(BaseModel):
    """Normalized chat answer from any backend."""

    message: str = Field(..., description="Assistant reply text")
    model: str = Field(..., description="Model or backend that produced the reply")


def coerce_messages(messages: Iterable[ChatMessage | dict[str, Any]]) -> list[ChatMessage]:
    """Accept ChatMessage instances or plain ``{"role", "content"}`` dicts."""
    return [
        message if isinstance(message, ChatMessage) else ChatMessage.model_validate(message)
        for message in messages
    ]
