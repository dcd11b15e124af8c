"""
College Chatbot Intent Core

Matches free-text questions about the college to canned answers using
embedding similarity.
"""

from .config_parser import ConfigParser, IntentConfig, DEFAULT_INTENT, DEFAULT_KNOWLEDGE_BASE
from .connectivity import SocketConnectivityOracle, StaticConnectivity
from .errors import KnowledgeBaseError, ProviderError, ProviderErrorKind, SessionBusyError
from .intent_matcher import (
    IntentMatcher,
    MatchOutcome,
    MatchReason,
    MatchResult,
    find_best_match,
    rank_intents,
)
from .knowledge_base import (
    KnowledgeBasePreparer,
    PreparedIntent,
    PreparedKnowledgeBase,
    prepare_knowledge_base,
)
from .openai_embedding_engine import OpenAIEmbeddingProvider
from .providers import create_embedding_provider
from .session import ChatMessage, ChatSession
from .similarity import cosine_similarity

__version__ = "1.0.0"

__all__ = [
    "ConfigParser",
    "IntentConfig",
    "DEFAULT_INTENT",
    "DEFAULT_KNOWLEDGE_BASE",
    "SocketConnectivityOracle",
    "StaticConnectivity",
    "KnowledgeBaseError",
    "ProviderError",
    "ProviderErrorKind",
    "SessionBusyError",
    "IntentMatcher",
    "MatchOutcome",
    "MatchReason",
    "MatchResult",
    "find_best_match",
    "rank_intents",
    "KnowledgeBasePreparer",
    "PreparedIntent",
    "PreparedKnowledgeBase",
    "prepare_knowledge_base",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
    "ChatMessage",
    "ChatSession",
    "cosine_similarity",
]
