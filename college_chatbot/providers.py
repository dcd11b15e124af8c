"""
Embedding provider selection from environment/CLI settings.
"""

import os
from typing import Optional
from loguru import logger
from dotenv import load_dotenv

load_dotenv()

PROVIDER_NAMES = ('openai', 'local')


def create_embedding_provider(engine: Optional[str] = None,
                              model_name: Optional[str] = None,
                              timeout: Optional[float] = None):
    """
    Build the embedding provider named by ``engine`` (EMBEDDING_PROVIDER, default 'openai').

    The local provider is imported lazily so that sentence-transformers is
    only required when it is actually used.
    """
    engine = (engine or os.getenv('EMBEDDING_PROVIDER', 'openai')).lower()
    logger.debug(f"Creating '{engine}' embedding provider")

    if engine == 'openai':
        from .openai_embedding_engine import OpenAIEmbeddingProvider
        return OpenAIEmbeddingProvider(model_name or "text-embedding-3-small", timeout=timeout)
    if engine == 'local':
        from .embedding_engine import SentenceTransformerEmbeddingProvider
        return SentenceTransformerEmbeddingProvider(
            model_name or os.getenv('EMBEDDING_MODEL', "sentence-transformers/all-MiniLM-L6-v2"),
            timeout=timeout
        )
    raise ValueError(f"Unknown embedding provider '{engine}', expected one of {', '.join(PROVIDER_NAMES)}")
