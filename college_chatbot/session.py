"""
Per-session chat state owned by the front end: the transcript and the busy flag.
"""

from typing import List, Optional
from loguru import logger
from .errors import SessionBusyError
from .intent_matcher import IntentMatcher, MatchOutcome

GREETING_INTENT = "greeting"


class ChatMessage:
    """One line of the transcript."""

    __slots__ = ('sender', 'text')

    def __init__(self, sender: str, text: str):
        self.sender = sender
        self.text = text

    def __eq__(self, other):
        if not isinstance(other, ChatMessage):
            return NotImplemented
        return (self.sender, self.text) == (other.sender, other.text)

    def __repr__(self):
        return f"ChatMessage(sender='{self.sender}', text='{self.text}')"


class ChatSession:
    """
    Mutable state of a single chat conversation.

    Only one message is answered at a time; a second ``send`` while the
    first is still awaiting the matcher raises SessionBusyError, which keeps
    bot replies in the order the user messages were sent.
    """

    def __init__(self, matcher: IntentMatcher, greeting: Optional[str] = None):
        self.matcher = matcher
        self.messages: List[ChatMessage] = []
        self.busy = False
        self.last_outcome: Optional[MatchOutcome] = None

        if greeting is None and matcher.knowledge_base is not None:
            intent = matcher.knowledge_base.get_intent_by_name(GREETING_INTENT)
            greeting = intent.response if intent else None
        if greeting:
            self.messages.append(ChatMessage("bot", greeting))

    @property
    def accepting_input(self) -> bool:
        return not self.busy and self.matcher.is_ready and self.matcher.connectivity()

    async def send(self, text: str) -> Optional[str]:
        """
        Submit a user message and append the bot reply.

        Returns:
            The reply text, or None when the message was blank
        """
        if not text or not text.strip():
            return None
        if self.busy:
            raise SessionBusyError("A previous message is still being answered")

        self.messages.append(ChatMessage("user", text))
        self.busy = True
        try:
            outcome = await self.matcher.match_with_reason(text)
        except BaseException:
            # busy blocks other sends, so the unanswered message is still last
            self.messages.pop()
            raise
        finally:
            self.busy = False

        self.last_outcome = outcome
        self.messages.append(ChatMessage("bot", outcome.text))
        logger.debug(f"Session reply ({outcome.reason.value}): {outcome.text}")
        return outcome.text

    def transcript(self) -> List[ChatMessage]:
        return list(self.messages)

    def __len__(self):
        return len(self.messages)
