"""
Prepared knowledge base: the static intents plus one embedding per example phrase.
"""

import asyncio
import time
from collections import abc
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
from loguru import logger
import numpy as np
from .config_parser import ConfigParser, IntentConfig, DEFAULT_INTENT
from .similarity import as_vector


class PreparedIntent:
    """An intent together with the embeddings of its examples."""

    __slots__ = ('_name', '_examples', '_response', '_example_embeddings')

    def __init__(self, name: str, examples: Iterable[str], response: str,
                 example_embeddings: Iterable[Any] = ()):
        examples = tuple(examples)
        example_embeddings = tuple(as_vector(embedding) for embedding in example_embeddings)
        if example_embeddings and len(example_embeddings) != len(examples):
            raise ValueError(
                f"Intent '{name}' has {len(examples)} examples but {len(example_embeddings)} embeddings"
            )

        object.__setattr__(self, '_name', name)
        object.__setattr__(self, '_examples', examples)
        object.__setattr__(self, '_response', response)
        object.__setattr__(self, '_example_embeddings', example_embeddings)

    def __setattr__(self, key, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def name(self) -> str:
        return self._name

    @property
    def examples(self) -> Tuple[str, ...]:
        return self._examples

    @property
    def response(self) -> str:
        return self._response

    @property
    def example_embeddings(self) -> Tuple[np.ndarray, ...]:
        return self._example_embeddings

    @property
    def is_default(self) -> bool:
        return self._name == DEFAULT_INTENT

    def __repr__(self):
        return (f"PreparedIntent(name='{self._name}', examples={len(self._examples)}, "
                f"embeddings={len(self._example_embeddings)})")


class PreparedKnowledgeBase:
    """Read-only mapping of intent name to PreparedIntent, in source order."""

    def __init__(self, intents: Iterable[PreparedIntent], model_name: Optional[str] = None):
        table: Dict[str, PreparedIntent] = {}
        for intent in intents:
            table[intent.name] = intent
        if DEFAULT_INTENT not in table:
            raise ValueError(f"A prepared knowledge base needs a '{DEFAULT_INTENT}' intent")

        self._intents: Mapping[str, PreparedIntent] = MappingProxyType(table)
        self._model_name = model_name

    @property
    def intents(self) -> Mapping[str, PreparedIntent]:
        return self._intents

    @property
    def model_name(self) -> Optional[str]:
        return self._model_name

    @property
    def default_response(self) -> str:
        return self._intents[DEFAULT_INTENT].response

    @property
    def example_count(self) -> int:
        return sum(len(intent.example_embeddings) for intent in self._intents.values())

    def get_intent_by_name(self, intent_name: str) -> Optional[PreparedIntent]:
        return self._intents.get(intent_name)

    def get_stats(self) -> Dict[str, Any]:
        dims = {embedding.shape[0]
                for intent in self._intents.values()
                for embedding in intent.example_embeddings}
        return {
            'total_intents': len(self._intents),
            'matchable_intents': sum(
                1 for intent in self._intents.values()
                if not intent.is_default and intent.example_embeddings
            ),
            'total_examples': self.example_count,
            'embedding_dimension': dims.pop() if len(dims) == 1 else None,
            'model_name': self._model_name
        }

    def __getitem__(self, intent_name: str) -> PreparedIntent:
        return self._intents[intent_name]

    def __contains__(self, intent_name) -> bool:
        return intent_name in self._intents

    def __iter__(self) -> Iterator[PreparedIntent]:
        return iter(self._intents.values())

    def __len__(self):
        return len(self._intents)

    def __repr__(self):
        return f"PreparedKnowledgeBase(intents={len(self._intents)}, examples={self.example_count})"


class KnowledgeBasePreparer:
    """Computes example embeddings for every intent of a static knowledge base."""

    def __init__(self, embedding_provider):
        """
        Args:
            embedding_provider: object with an async ``embed(text)`` method
        """
        self.embedding_provider = embedding_provider

    async def prepare(self, knowledge_base) -> PreparedKnowledgeBase:
        """
        Build a new PreparedKnowledgeBase from the static knowledge base.

        Accepts a ConfigParser, an iterable of IntentConfig or a raw mapping.
        The examples of one intent are embedded concurrently; provider errors
        are not caught and propagate to the caller.
        """
        intents = self._coerce(knowledge_base)
        logger.info(f"Preparing knowledge base with {len(intents)} intents")
        start_time = time.time()

        prepared: List[PreparedIntent] = []
        for intent in intents:
            embeddings: Tuple[Any, ...] = ()
            if intent.examples:
                embeddings = tuple(await self._embed_all(intent.examples))
                logger.debug(f"Embedded {len(embeddings)} examples for intent '{intent.name}'")
            prepared.append(PreparedIntent(intent.name, intent.examples, intent.response, embeddings))

        knowledge = PreparedKnowledgeBase(prepared, getattr(self.embedding_provider, 'model_name', None))
        logger.info(
            f"Prepared {len(knowledge)} intents ({knowledge.example_count} examples) "
            f"in {time.time() - start_time:.2f}s"
        )
        return knowledge

    async def _embed_all(self, examples: Tuple[str, ...]) -> List[Any]:
        """Embed examples concurrently; on the first failure cancel the rest and re-raise."""
        tasks = [asyncio.ensure_future(self.embedding_provider.embed(example)) for example in examples]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    def _coerce(knowledge_base) -> List[IntentConfig]:
        if isinstance(knowledge_base, ConfigParser):
            return list(knowledge_base)
        if isinstance(knowledge_base, abc.Mapping):
            return list(ConfigParser.from_mapping(knowledge_base))
        return list(knowledge_base)


async def prepare_knowledge_base(knowledge_base, embedding_provider) -> PreparedKnowledgeBase:
    """Shortcut for ``KnowledgeBasePreparer(embedding_provider).prepare(knowledge_base)``."""
    return await KnowledgeBasePreparer(embedding_provider).prepare(knowledge_base)
