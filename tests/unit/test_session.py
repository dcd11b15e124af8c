"""Unit tests for ChatSession."""

import asyncio

import numpy as np
import pytest

from college_chatbot.connectivity import StaticConnectivity
from college_chatbot.errors import SessionBusyError
from college_chatbot.intent_matcher import NOT_READY_MESSAGE, OFFLINE_MESSAGE, IntentMatcher
from college_chatbot.session import ChatMessage, ChatSession


class TestChatSession:
    """Test cases for ChatSession."""

    @pytest.mark.asyncio
    async def test_starts_with_greeting(self, matcher, greeting_knowledge_base):
        await matcher.prepare(greeting_knowledge_base)

        session = ChatSession(matcher)

        assert session.transcript() == [ChatMessage("bot", "Hello!")]

    def test_explicit_greeting_before_preparation(self, matcher):
        session = ChatSession(matcher, greeting="Welcome!")
        assert session.transcript() == [ChatMessage("bot", "Welcome!")]

    def test_no_greeting_when_not_prepared(self, matcher):
        assert len(ChatSession(matcher)) == 0

    @pytest.mark.asyncio
    async def test_send_appends_question_and_reply(self, matcher, greeting_knowledge_base):
        await matcher.prepare(greeting_knowledge_base)
        session = ChatSession(matcher)

        reply = await session.send("hello there")
        await session.send("xyz123")

        assert reply == "Hello!"
        assert session.transcript()[1:] == [
            ChatMessage("user", "hello there"),
            ChatMessage("bot", "Hello!"),
            ChatMessage("user", "xyz123"),
            ChatMessage("bot", "I don't understand."),
        ]
        assert session.last_outcome.reason == "below_threshold"

    @pytest.mark.asyncio
    async def test_blank_messages_are_ignored(self, matcher, greeting_knowledge_base, embedding_provider):
        await matcher.prepare(greeting_knowledge_base)
        embedding_provider.embed.reset_mock()
        session = ChatSession(matcher)

        assert await session.send("   ") is None
        assert await session.send("") is None
        assert len(session) == 1
        assert embedding_provider.embed.await_count == 0

    @pytest.mark.asyncio
    async def test_second_message_rejected_while_busy(self, greeting_knowledge_base, vectors):
        release = asyncio.Event()

        class SlowProvider:
            async def embed(self, text):
                if text == "hello there":
                    await release.wait()
                return np.array(vectors[text])

        matcher = IntentMatcher(SlowProvider(), confidence_threshold=0.8)
        await matcher.prepare(greeting_knowledge_base)
        session = ChatSession(matcher)

        pending = asyncio.create_task(session.send("hello there"))
        await asyncio.sleep(0)

        assert session.busy
        assert not session.accepting_input
        with pytest.raises(SessionBusyError):
            await session.send("xyz123")

        release.set()
        assert await pending == "Hello!"
        assert not session.busy
        assert [m.text for m in session.transcript()] == ["Hello!", "hello there", "Hello!"]

    @pytest.mark.asyncio
    async def test_short_circuit_replies_are_recorded(self, embedding_provider):
        connectivity = StaticConnectivity(True)
        matcher = IntentMatcher(embedding_provider, confidence_threshold=0.8, connectivity=connectivity)
        session = ChatSession(matcher)

        assert not session.accepting_input
        assert await session.send("hello") == NOT_READY_MESSAGE

        connectivity.online = False
        assert await session.send("hello") == OFFLINE_MESSAGE
        assert [m.sender for m in session.transcript()] == ["user", "bot", "user", "bot"]

    @pytest.mark.asyncio
    async def test_failed_send_leaves_no_unanswered_message(self, greeting_knowledge_base, embedding_provider):
        def broken_connectivity():
            raise RuntimeError("network status unavailable")

        matcher = IntentMatcher(embedding_provider, confidence_threshold=0.8, connectivity=broken_connectivity)
        await matcher.prepare(greeting_knowledge_base)
        session = ChatSession(matcher)

        with pytest.raises(RuntimeError):
            await session.send("hello there")

        assert session.transcript() == [ChatMessage("bot", "Hello!")]
        assert not session.busy

    @pytest.mark.asyncio
    async def test_accepting_input_when_ready(self, matcher, greeting_knowledge_base):
        await matcher.prepare(greeting_knowledge_base)
        assert ChatSession(matcher).accepting_input
