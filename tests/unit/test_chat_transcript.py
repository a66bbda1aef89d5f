"""Unit tests for chat transcript rendering and flattening."""

from gitty.models.chat import coerce_messages
from gitty.services.llm.anything_llm import flatten_conversation
from gitty.services.llm.chat_strategy import render_transcript


def _conversation():
    return coerce_messages(
        [
            {"role": "system", "content": "S"},
            {"role": "user", "content": "A"},
            {"role": "assistant", "content": "B"},
            {"role": "user", "content": "C"},
        ]
    )


class TestRenderTranscript:
    """Tests for the completion-endpoint transcript."""

    def test_full_conversation(self):
        assert render_transcript(_conversation()) == (
            "S\n\nUser: A\nAssistant: B\nUser: C\nAssistant: "
        )

    def test_without_system_message(self):
        messages = coerce_messages([{"role": "user", "content": "hi"}])
        assert render_transcript(messages) == "User: hi\nAssistant: "

    def test_only_first_system_message_is_preamble(self):
        messages = coerce_messages(
            [
                {"role": "system", "content": "first"},
                {"role": "system", "content": "second"},
                {"role": "user", "content": "q"},
            ]
        )
        assert render_transcript(messages) == "first\n\nUser: q\nAssistant: "


class TestFlattenConversation:
    """Tests for the single-message form used by AnythingLLM."""

    def test_history_then_last_user_message(self):
        assert flatten_conversation(_conversation()) == "S\n\nUser: A\nAssistant: B\nC"

    def test_single_user_message(self):
        messages = coerce_messages([{"role": "user", "content": "hello"}])
        assert flatten_conversation(messages) == "hello"
