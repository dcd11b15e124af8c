"""
Error types shared by the embedding providers, knowledge base and chat session.
"""

from enum import Enum


class ProviderErrorKind(str, Enum):
    """Failure classes reported by an embedding provider."""

    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class ProviderError(Exception):
    """Raised by an embedding provider when a text could not be embedded."""

    def __init__(self, kind: ProviderErrorKind, message: str = ""):
        kind = ProviderErrorKind(kind)
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value

    def __repr__(self):
        return f"ProviderError(kind='{self.kind.value}', message='{self.message}')"


class KnowledgeBaseError(ValueError):
    """Raised when a knowledge base payload does not have the expected shape."""


class SessionBusyError(RuntimeError):
    """Raised when a message is submitted while another one is still being answered."""
