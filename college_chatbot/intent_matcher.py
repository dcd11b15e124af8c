"""
Runtime intent matching: pick the canned response for a user utterance.
"""

import os
from enum import Enum
from typing import Callable, List, Optional, Tuple
from loguru import logger
from dotenv import load_dotenv
from .config_parser import DEFAULT_INTENT
from .errors import ProviderError, ProviderErrorKind
from .knowledge_base import KnowledgeBasePreparer, PreparedKnowledgeBase
from .similarity import cosine_similarity

# Load environment variables first
load_dotenv()

DEFAULT_SIMILARITY_THRESHOLD = 0.8

OFFLINE_MESSAGE = "It seems you're offline. Please check your internet connection."
NOT_READY_MESSAGE = "Please wait, I'm still getting ready..."
RATE_LIMITED_MESSAGE = "I'm experiencing high traffic right now. Please try again in a moment."
UNAUTHORIZED_MESSAGE = "There's an issue with my internal setup (API key). Please inform the administrator."
TIMEOUT_MESSAGE = "I'm taking too long to respond right now. Please try again in a moment."

PROVIDER_ERROR_MESSAGES = {
    ProviderErrorKind.RATE_LIMITED: RATE_LIMITED_MESSAGE,
    ProviderErrorKind.UNAUTHORIZED: UNAUTHORIZED_MESSAGE,
    ProviderErrorKind.TIMEOUT: TIMEOUT_MESSAGE,
}


class MatchReason(str, Enum):
    """Why a given response was chosen."""

    MATCHED = "matched"
    BELOW_THRESHOLD = "below_threshold"
    OFFLINE = "offline"
    NOT_READY = "not_ready"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"


_REASON_BY_KIND = {
    ProviderErrorKind.RATE_LIMITED: MatchReason.RATE_LIMITED,
    ProviderErrorKind.UNAUTHORIZED: MatchReason.UNAUTHORIZED,
    ProviderErrorKind.TIMEOUT: MatchReason.TIMEOUT,
    ProviderErrorKind.UNKNOWN: MatchReason.PROVIDER_ERROR,
}


class MatchResult:
    """Best intent and its similarity score for one utterance."""

    __slots__ = ('intent', 'score')

    def __init__(self, intent: str = DEFAULT_INTENT, score: float = 0.0):
        self.intent = intent
        self.score = score

    def __eq__(self, other):
        if not isinstance(other, MatchResult):
            return NotImplemented
        return (self.intent, self.score) == (other.intent, other.score)

    def __repr__(self):
        return f"MatchResult(intent='{self.intent}', score={self.score:.3f})"


class MatchOutcome:
    """Response text plus the reason it was chosen."""

    __slots__ = ('text', 'reason', 'intent', 'score')

    def __init__(self, text: str, reason: MatchReason, intent: Optional[str] = None, score: Optional[float] = None):
        self.text = text
        self.reason = reason
        self.intent = intent
        self.score = score

    def __repr__(self):
        return f"MatchOutcome(reason='{self.reason.value}', intent={self.intent!r}, score={self.score})"


def find_best_match(query_embedding, knowledge_base: PreparedKnowledgeBase) -> MatchResult:
    """
    Find the intent whose closest example is most similar to the query.

    Starts from ('default', 0.0). A candidate only replaces the current best
    when its score is strictly greater, so the first one found wins ties.
    Intents without embeddings are skipped.
    """
    best = MatchResult()
    for intent in knowledge_base:
        if intent.is_default or not intent.example_embeddings:
            continue
        for example_embedding in intent.example_embeddings:
            score = cosine_similarity(query_embedding, example_embedding)
            if score > best.score:
                best = MatchResult(intent.name, score)
    return best


def rank_intents(query_embedding, knowledge_base: PreparedKnowledgeBase) -> List[Tuple[str, float]]:
    """Best score per matchable intent, highest first. Diagnostic only."""
    scores = []
    for intent in knowledge_base:
        if intent.is_default or not intent.example_embeddings:
            continue
        best_score = max(cosine_similarity(query_embedding, embedding) for embedding in intent.example_embeddings)
        scores.append((intent.name, best_score))
    scores.sort(key=lambda x: x[1], reverse=True)
    return scores


class IntentMatcher:
    """Holds the prepared knowledge base and answers user utterances."""

    def __init__(self,
                 embedding_provider,
                 confidence_threshold: Optional[float] = None,
                 connectivity: Optional[Callable[[], bool]] = None):
        """
        Initialize the matcher.

        Args:
            embedding_provider: object with an async ``embed(text)`` method
            confidence_threshold: Minimum similarity score, in (0, 1]; read from
                SIMILARITY_THRESHOLD when omitted
            connectivity: zero-argument callable returning True when online
        """
        if confidence_threshold is None:
            confidence_threshold = float(os.getenv('SIMILARITY_THRESHOLD', str(DEFAULT_SIMILARITY_THRESHOLD)))
        if not 0.0 < confidence_threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be in (0, 1], got {confidence_threshold}")

        self.embedding_provider = embedding_provider
        self.confidence_threshold = confidence_threshold
        self.connectivity = connectivity or (lambda: True)
        self.knowledge_base: Optional[PreparedKnowledgeBase] = None
        self.last_match: Optional[MatchResult] = None
        self.last_query_embedding = None

    @property
    def is_ready(self) -> bool:
        return self.knowledge_base is not None

    async def prepare(self, knowledge_base) -> PreparedKnowledgeBase:
        """
        Build the prepared knowledge base and make the matcher ready.

        Provider failures propagate; the matcher stays not ready and
        ``prepare`` may be called again.
        """
        prepared = await KnowledgeBasePreparer(self.embedding_provider).prepare(knowledge_base)
        self.knowledge_base = prepared
        logger.info(f"Intent matcher ready with {len(prepared)} intents (threshold {self.confidence_threshold})")
        return prepared

    async def match(self, utterance: str, knowledge_base: Optional[PreparedKnowledgeBase] = None) -> str:
        """Return the response text for an utterance. Never raises."""
        outcome = await self.match_with_reason(utterance, knowledge_base)
        return outcome.text

    async def match_with_reason(self, utterance: str,
                                knowledge_base: Optional[PreparedKnowledgeBase] = None) -> MatchOutcome:
        """
        Classify an utterance and return the response together with the reason.

        Args:
            utterance: User message
            knowledge_base: Prepared knowledge base to use instead of the one
                built by ``prepare``

        Returns:
            MatchOutcome whose text is always a displayable string
        """
        if knowledge_base is None:
            knowledge_base = self.knowledge_base

        if not self.connectivity():
            logger.warning("Client is offline; skipping embedding call")
            return MatchOutcome(OFFLINE_MESSAGE, MatchReason.OFFLINE)

        if knowledge_base is None:
            logger.warning("Knowledge base is not prepared yet")
            return MatchOutcome(NOT_READY_MESSAGE, MatchReason.NOT_READY)

        try:
            logger.info(f"Processing query: '{utterance}'")
            query_embedding = await self.embedding_provider.embed(utterance)
            self.last_query_embedding = query_embedding
            best = find_best_match(query_embedding, knowledge_base)
        except ProviderError as e:
            logger.error(f"Embedding provider failed ({e.kind.value}): {e.message}")
            text = PROVIDER_ERROR_MESSAGES.get(e.kind, knowledge_base.default_response)
            return MatchOutcome(text, _REASON_BY_KIND[e.kind])
        except Exception as e:
            logger.error(f"Error fetching response: {e}")
            return MatchOutcome(knowledge_base.default_response, MatchReason.PROVIDER_ERROR)

        self.last_match = best
        logger.debug(f"Best matching intent: {best.intent} with score: {best.score:.3f}")

        if best.score >= self.confidence_threshold:
            logger.info(f"Matched intent '{best.intent}' with confidence {best.score:.3f}")
            return MatchOutcome(knowledge_base[best.intent].response, MatchReason.MATCHED, best.intent, best.score)

        logger.warning(
            f"No intent matched above threshold {self.confidence_threshold}. Best score: {best.score:.3f}"
        )
        return MatchOutcome(knowledge_base.default_response, MatchReason.BELOW_THRESHOLD, best.intent, best.score)

    def get_stats(self):
        """Get system statistics."""
        provider_stats = {}
        if hasattr(self.embedding_provider, 'get_stats'):
            provider_stats = self.embedding_provider.get_stats()
        return {
            'knowledge_base_stats': self.knowledge_base.get_stats() if self.knowledge_base is not None else {'status': 'not_built'},
            'embedding_stats': provider_stats,
            'matching_config': {
                'confidence_threshold': self.confidence_threshold,
                'ready': self.is_ready
            }
        }
