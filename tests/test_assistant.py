"""
Assistant tool loop tests: bounded rounds, field replacement, invalid calls,
greeting and connection failures.

Run with: pytest tests/test_assistant.py -v
"""

import pytest
from unittest.mock import AsyncMock

from creative_studio.models import AssistantReply, CampaignBrief, Session, ToolCall, ToolResult
from creative_studio.services.assistant import (
    CONNECTION_FAILED,
    GREETING,
    ROUND_LIMIT,
    START_FAILED,
    TOOL_SUCCESS,
    AssistantSession,
)


def update_call(**args) -> ToolCall:
    return ToolCall(name="update_brief_fields", args=args)


class LoopingBackend:
    """Keeps asking for another update until its calls are declined."""

    def __init__(self):
        self.sent = []
        self.rounds = 0

    async def send(self, message, brief):
        self.sent.append(message)
        if isinstance(message, str) and message == "hi":
            return AssistantReply(text="Hello again")
        if isinstance(message, list) and all(r.result == ROUND_LIMIT for r in message):
            return AssistantReply(text="I stopped updating the form.")
        self.rounds += 1
        return AssistantReply(tool_calls=(update_call(context=f"round {self.rounds}"),))


@pytest.fixture
def session():
    return Session(brief=CampaignBrief(audience_action="old action", key_message="old message", context="old context"))


# ============================================================================
# Tool loop
# ============================================================================

class TestToolLoop:
    @pytest.mark.asyncio
    async def test_applies_update_and_returns_final_text(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [
            AssistantReply(tool_calls=(update_call(key_message="Crunchy and healthy"),)),
            AssistantReply(text="Updated your key message."),
        ]
        chat = AssistantSession(backend, session)

        reply = await chat.send("Change the message to crunchy and healthy")

        assert reply.text == "Updated your key message."
        assert session.brief.key_message == "Crunchy and healthy"
        assert session.brief.audience_action == "old action"
        assert session.brief.context == "old context"
        assert chat.rounds_last_turn == 1

        results = backend.send.call_args_list[1].args[0]
        assert isinstance(results[0], ToolResult)
        assert results[0].result == TOOL_SUCCESS

    @pytest.mark.asyncio
    async def test_backend_sees_updated_brief(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [
            AssistantReply(tool_calls=(update_call(context="A new grain-free treat"),)),
            AssistantReply(text="Done"),
        ]
        await AssistantSession(backend, session).send("Describe the product")

        brief_on_second_call = backend.send.call_args_list[1].args[1]
        assert brief_on_second_call.context == "A new grain-free treat"

    @pytest.mark.asyncio
    async def test_loop_stops_after_max_rounds(self, session):
        backend = LoopingBackend()
        chat = AssistantSession(backend, session, max_rounds=3)

        reply = await chat.send("Loop forever")

        assert reply.text == "I stopped updating the form."
        assert chat.rounds_last_turn == 3
        # initial send + one send per executed round + the declined calls
        assert len(backend.sent) == 5
        assert [r.result for r in backend.sent[-1]] == [ROUND_LIMIT]
        # the declined call is not applied
        assert session.brief.context == "round 3"
        assert chat.pending_calls == ()
        assert "3 automatic tool rounds" in session.error_text

    @pytest.mark.asyncio
    async def test_chat_usable_after_round_limit(self, session):
        backend = LoopingBackend()
        chat = AssistantSession(backend, session, max_rounds=2)

        await chat.send("Loop forever")
        reply = await chat.send("hi")

        assert reply.text == "Hello again"
        assert backend.sent[-1] == "hi"
        assert [m.role for m in chat.messages] == ["user", "model", "user", "model"]

    @pytest.mark.asyncio
    async def test_calls_left_after_decline_answered_next_turn(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [
            AssistantReply(tool_calls=(update_call(context="first"),)),
            AssistantReply(tool_calls=(update_call(context="second"),)),
            AssistantReply(tool_calls=(update_call(context="third"),)),
            AssistantReply(text="Ok"),
            AssistantReply(text="Hello again"),
        ]
        chat = AssistantSession(backend, session, max_rounds=1)

        await chat.send("Loop forever")
        assert chat.pending_calls == (update_call(context="third"),)

        reply = await chat.send("hi")

        declined = backend.send.call_args_list[3].args[0]
        assert [r.result for r in declined] == [ROUND_LIMIT]
        assert backend.send.call_args_list[4].args[0] == "hi"
        assert reply.text == "Hello again"
        assert session.brief.context == "first"

    @pytest.mark.asyncio
    async def test_invalid_arguments_reported_back(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [
            AssistantReply(tool_calls=(update_call(objective="Win awards"), ToolCall(name="delete_everything"))),
            AssistantReply(text="Sorry, that objective is not allowed."),
        ]
        await AssistantSession(backend, session).send("Set objective to win awards")

        results = backend.send.call_args_list[1].args[0]
        assert results[0].result.startswith("error:")
        assert results[1].result == "error: unknown tool delete_everything"
        assert session.brief.objective == CampaignBrief().objective

    @pytest.mark.asyncio
    async def test_several_calls_in_one_round(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [
            AssistantReply(tool_calls=(
                update_call(objective="Generate leads"),
                update_call(audience_action="Sign up for samples"),
            )),
            AssistantReply(text="Both updated."),
        ]
        await AssistantSession(backend, session).send("Leads, and make them sign up")

        assert session.brief.objective == "Generate leads"
        assert session.brief.audience_action == "Sign up for samples"
        assert session.brief.key_message == "old message"


# ============================================================================
# Conversation
# ============================================================================

class TestConversation:
    @pytest.mark.asyncio
    async def test_start_sends_hidden_greeting(self, session):
        backend = AsyncMock()
        backend.send.return_value = AssistantReply(text="Hello! What are we promoting?")
        chat = AssistantSession(backend, session)

        reply = await chat.start()

        assert backend.send.call_args.args[0] == GREETING
        assert [m.role for m in chat.messages] == ["model"]
        assert reply.text == "Hello! What are we promoting?"

    @pytest.mark.asyncio
    async def test_start_failure_appends_apology(self, session):
        backend = AsyncMock()
        backend.send.side_effect = RuntimeError("boom")
        chat = AssistantSession(backend, session)

        reply = await chat.start()
        assert reply.text == START_FAILED

    @pytest.mark.asyncio
    async def test_connection_error_keeps_conversation(self, session):
        backend = AsyncMock()
        backend.send.side_effect = [RuntimeError("network down"), AssistantReply(text="I'm back")]
        chat = AssistantSession(backend, session)

        first = await chat.send("Hello?")
        second = await chat.send("Still there?")

        assert first.text == CONNECTION_FAILED
        assert second.text == "I'm back"
        assert [m.role for m in chat.messages] == ["user", "model", "user", "model"]

    @pytest.mark.asyncio
    async def test_empty_message_is_ignored(self, session):
        backend = AsyncMock()
        chat = AssistantSession(backend, session)

        assert await chat.send("   ") is None
        backend.send.assert_not_called()
        assert chat.messages == []
