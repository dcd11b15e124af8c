"""
Local sentence-transformers embedding provider, usable without an API key.
"""

import asyncio
import os
from typing import Any, Dict, Optional
import numpy as np
from sentence_transformers import SentenceTransformer
from loguru import logger
from .errors import ProviderError, ProviderErrorKind
from .similarity import as_vector


class SentenceTransformerEmbeddingProvider:
    """Handles embedding generation with a locally loaded model."""

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
                 timeout: Optional[float] = None):
        """
        Initialize the provider and load the model.

        Args:
            model_name: HuggingFace model name for sentence transformers
            timeout: Seconds to wait for a single encode call (EMBEDDING_TIMEOUT, default 15)
        """
        logger.info(f"Loading embedding model: {model_name}")

        self.model = SentenceTransformer(model_name)
        self.model.eval()  # Set to evaluation mode for faster inference

        self.model_name = model_name
        self.embedding_dim = self.model.get_sentence_embedding_dimension()
        self.timeout = timeout if timeout is not None else float(os.getenv('EMBEDDING_TIMEOUT', '15'))
        self.request_count = 0

        logger.info(f"Embedding dimension: {self.embedding_dim}")

    async def embed(self, text: str) -> np.ndarray:
        """Embed a single text off the event loop."""
        self.request_count += 1
        try:
            embedding = await asyncio.wait_for(
                asyncio.to_thread(self.model.encode, text),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Local embedding timed out after {self.timeout}s")
            raise ProviderError(ProviderErrorKind.TIMEOUT, f"Embedding call timed out after {self.timeout}s") from e
        except Exception as e:
            logger.error(f"Local embedding error: {e}")
            raise ProviderError(ProviderErrorKind.UNKNOWN, str(e)) from e
        return as_vector(embedding)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'engine_type': 'sentence-transformers',
            'model_name': self.model_name,
            'embedding_dimension': self.embedding_dim,
            'timeout': self.timeout,
            'requests': self.request_count
        }
