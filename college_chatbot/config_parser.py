"""
Configuration parser for the chatbot knowledge base YAML file.
"""

import yaml
from collections.abc import Mapping
from typing import Dict, List, Any, Iterable, Optional, Tuple
from pathlib import Path
from loguru import logger
from .errors import KnowledgeBaseError

DEFAULT_INTENT = "default"
DEFAULT_KNOWLEDGE_BASE = Path(__file__).parent / "data" / "knowledge_base.yaml"


class IntentConfig:
    """Represents a single intent of the static knowledge base."""

    def __init__(self, name: str, examples: Iterable[str], response: str):
        self.name = name
        self.examples: Tuple[str, ...] = tuple(examples)
        self.response = response

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_INTENT

    def to_dict(self) -> Dict[str, Any]:
        data = {'response': self.response}
        if self.examples:
            data['examples'] = list(self.examples)
        return data

    def __eq__(self, other):
        if not isinstance(other, IntentConfig):
            return NotImplemented
        return (self.name, self.examples, self.response) == (other.name, other.examples, other.response)

    def __repr__(self):
        return f"IntentConfig(name='{self.name}', examples={len(self.examples)})"


class ConfigParser:
    """Parses and validates the static knowledge base."""

    def __init__(self):
        self.intents: List[IntentConfig] = []
        self.source_path: Optional[str] = None

    def load_config_file(self, config_path: str) -> None:
        """Load intents from a YAML knowledge base file."""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Knowledge base file not found: {config_path}")

        logger.info(f"Loading knowledge base from {config_path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        self.load_mapping(data, source=config_path)
        self.source_path = str(path)

    def load_mapping(self, data: Any, source: str = "<mapping>") -> None:
        """
        Load intents from an in-memory mapping.

        Args:
            data: Mapping of intent name to {examples: [...], response: "..."}
            source: Label used in error messages
        """
        if not isinstance(data, Mapping):
            raise KnowledgeBaseError(f"Expected a mapping of intents in {source}")

        intents = [self._parse_intent(name, entry, source) for name, entry in data.items()]

        default = next((intent for intent in intents if intent.is_default), None)
        if default is None:
            raise KnowledgeBaseError(f"Missing mandatory '{DEFAULT_INTENT}' intent in {source}")
        if default.examples:
            raise KnowledgeBaseError(f"The '{DEFAULT_INTENT}' intent must not have examples ({source})")
        if not default.response.strip():
            raise KnowledgeBaseError(f"The '{DEFAULT_INTENT}' intent needs a response ({source})")

        self.intents = intents
        logger.info(f"Loaded {len(intents)} intents ({self.example_count} examples) from {source}")

    @staticmethod
    def _parse_intent(name: Any, entry: Any, source: str) -> IntentConfig:
        if not isinstance(name, str) or not name:
            raise KnowledgeBaseError(f"Intent names must be non-empty strings ({source})")
        if not isinstance(entry, Mapping):
            raise KnowledgeBaseError(f"Intent '{name}' must be a mapping ({source})")

        response = entry.get('response')
        if not isinstance(response, str):
            raise KnowledgeBaseError(f"Intent '{name}' needs a string response ({source})")

        examples = entry.get('examples') or []
        if not isinstance(examples, list):
            raise KnowledgeBaseError(f"Examples of intent '{name}' must be a list ({source})")
        for example in examples:
            if not isinstance(example, str) or not example.strip():
                raise KnowledgeBaseError(f"Intent '{name}' has a blank or non-string example ({source})")

        return IntentConfig(name, examples, response)

    @classmethod
    def from_mapping(cls, data: Any) -> "ConfigParser":
        parser = cls()
        parser.load_mapping(data)
        return parser

    @classmethod
    def from_file(cls, config_path: str) -> "ConfigParser":
        parser = cls()
        parser.load_config_file(config_path)
        return parser

    def get_intent_by_name(self, intent_name: str) -> Optional[IntentConfig]:
        """Get a specific intent by name."""
        for intent in self.intents:
            if intent.name == intent_name:
                return intent
        return None

    @property
    def default_response(self) -> str:
        return self.get_intent_by_name(DEFAULT_INTENT).response

    @property
    def example_count(self) -> int:
        return sum(len(intent.examples) for intent in self.intents)

    def get_intent_metadata(self) -> List[Dict[str, Any]]:
        """Get metadata for all intents."""
        return [
            {
                'intent': intent.name,
                'example_count': len(intent.examples),
                'is_default': intent.is_default
            }
            for intent in self.intents
        ]

    def __len__(self):
        return len(self.intents)

    def __iter__(self):
        return iter(self.intents)
