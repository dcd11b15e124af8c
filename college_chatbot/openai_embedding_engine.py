"""
OpenAI-based embedding provider for the chatbot knowledge base and user queries.
"""

import asyncio
import os
import time
from typing import Any, Dict, Optional
import numpy as np
import openai
from loguru import logger
from openai import AsyncOpenAI
from dotenv import load_dotenv
from .errors import ProviderError, ProviderErrorKind
from .similarity import as_vector

# Load environment variables
load_dotenv()


def classify_openai_error(error: Exception) -> ProviderErrorKind:
    """Map an exception raised by the OpenAI client to a ProviderErrorKind."""
    if isinstance(error, openai.RateLimitError):
        return ProviderErrorKind.RATE_LIMITED
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderErrorKind.UNAUTHORIZED
    if isinstance(error, (asyncio.TimeoutError, openai.APITimeoutError)):
        return ProviderErrorKind.TIMEOUT
    return ProviderErrorKind.UNKNOWN


class OpenAIEmbeddingProvider:
    """Turns text into embedding vectors using the OpenAI embeddings API."""

    def __init__(self,
                 model_name: str = "text-embedding-3-small",
                 timeout: Optional[float] = None,
                 client: Optional[AsyncOpenAI] = None,
                 cache_size_limit: int = 100):
        """
        Initialize the provider.

        Args:
            model_name: OpenAI embedding model name, overridden by OPENAI_EMBEDDING_MODEL
            timeout: Seconds to wait for a single embedding call (EMBEDDING_TIMEOUT, default 15)
            client: Pre-built AsyncOpenAI client; one is created from OPENAI_API_KEY otherwise
            cache_size_limit: Maximum number of texts whose embeddings are kept in memory
        """
        if client is None:
            api_key = os.getenv('OPENAI_API_KEY')
            if not api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = AsyncOpenAI(api_key=api_key)

        self.client = client
        self.model_name = os.getenv('OPENAI_EMBEDDING_MODEL', model_name)
        self.timeout = timeout if timeout is not None else float(os.getenv('EMBEDDING_TIMEOUT', '15'))

        # Repeated texts (greetings, retries by the user) skip the API call
        self.query_cache: Dict[str, np.ndarray] = {}
        self.cache_size_limit = cache_size_limit

        # Performance tracking
        self.last_token_usage: Dict[str, Any] = {}
        self.last_timing: Dict[str, Any] = {}
        self.total_tokens_used = 0
        self.request_count = 0

        logger.info(f"Initialized OpenAI embedding provider with model: {self.model_name}")

    async def embed(self, text: str) -> np.ndarray:
        """
        Embed a single text.

        Raises:
            ProviderError: classified failure of the OpenAI call
        """
        if text in self.query_cache:
            logger.debug(f"Using cached embedding for: '{text}'")
            self.last_token_usage = {'embedding_tokens': 0, 'cached': True}
            self.last_timing = {'embedding_time': 0.0, 'timestamp': time.time()}
            return self.query_cache[text]

        start_time = time.time()
        self.request_count += 1
        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(input=[text], model=self.model_name),
                timeout=self.timeout
            )
        except Exception as e:
            kind = classify_openai_error(e)
            logger.error(f"OpenAI embedding error ({kind.value}): {e}")
            raise ProviderError(kind, str(e) or f"Embedding call timed out after {self.timeout}s") from e

        embedding = as_vector(response.data[0].embedding)

        embedding_tokens = 0
        if getattr(response, 'usage', None):
            embedding_tokens = response.usage.total_tokens
            self.total_tokens_used += embedding_tokens

        self.last_timing = {
            'embedding_time': time.time() - start_time,
            'timestamp': time.time()
        }
        self.last_token_usage = {'embedding_tokens': embedding_tokens, 'cached': False}

        if len(self.query_cache) < self.cache_size_limit:
            self.query_cache[text] = embedding

        return embedding

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about provider usage."""
        return {
            'engine_type': 'openai',
            'model_name': self.model_name,
            'timeout': self.timeout,
            'requests': self.request_count,
            'cached_texts': len(self.query_cache),
            'total_tokens_used': self.total_tokens_used
        }
