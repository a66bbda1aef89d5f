"""Chat with completion-endpoint fallback.

Some local servers expose only a completion endpoint. For those, the
conversation is rendered into a plain transcript and sent as a prompt
with stop sequences that end the reply at the next user turn.
"""

import logging
from typing import Any, Awaitable, Callable, Mapping

from gitty.lib.exceptions import EndpointNotFoundError
from gitty.models.chat import ChatMessage, ChatResponse, ChatRole
from gitty.models.provider import ProviderDescriptor

logger = logging.getLogger(__name__)

TRANSCRIPT_STOP = ["User:", "\nUser:"]

ChatAttempt = Callable[
    [list[ChatMessage], Mapping[str, Any] | None, ProviderDescriptor, str | None],
    Awaitable[ChatResponse],
]


def render_transcript(messages: list[ChatMessage]) -> str:
    """
    Render a conversation as a completion prompt.

    The first system message becomes a preamble; user and assistant
    turns become ``User: ...`` / ``Assistant: ...`` lines, and the prompt
    ends with an open ``Assistant: `` turn.
    """
    transcript = ""

    system = next((m for m in messages if m.role == ChatRole.SYSTEM), None)
    if system is not None:
        transcript += f"{system.content}\n\n"

    for message in messages:
        if message.role == ChatRole.USER:
            transcript += f"User: {message.content}\n"
        elif message.role == ChatRole.ASSISTANT:
            transcript += f"Assistant: {message.content}\n"

    return transcript + "Assistant: "


class ChatStrategy:
    """
    Native chat endpoint first, transcript over the completion endpoint second.

    The fallback is taken only when the native call fails with
    EndpointNotFoundError, and it is attempted once. Any other failure
    from either attempt propagates unchanged.
    """

    def __init__(self, provider: str, native: ChatAttempt, fallback: ChatAttempt | None = None):
        self.provider = provider
        self.native = native
        self.fallback = fallback

    async def __call__(
        self,
        messages: list[ChatMessage],
        options: Mapping[str, Any] | None,
        config: ProviderDescriptor,
        access_token: str | None = None,
    ) -> ChatResponse:
        try:
            return await self.native(messages, options, config, access_token)
        except EndpointNotFoundError:
            if self.fallback is None:
                raise
            logger.info(
                f"{self.provider} has no chat endpoint, falling back to completion transcript"
            )

        return await self.fallback(messages, options, config, access_token)
