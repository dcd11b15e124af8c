"""Shared fixtures: a tiny knowledge base and a fake embedding provider."""

import math
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from college_chatbot.connectivity import StaticConnectivity
from college_chatbot.intent_matcher import IntentMatcher


@pytest.fixture
def greeting_knowledge_base():
    """Knowledge base with one matchable intent and the fallback."""
    return {
        "greeting": {"examples": ["hi", "hello"], "response": "Hello!"},
        "default": {"response": "I don't understand."},
    }


@pytest.fixture
def college_knowledge_base():
    """Knowledge base with several intents."""
    return {
        "greeting": {"examples": ["hi", "hello"], "response": "Hello!"},
        "courses": {"examples": ["what courses do you offer"], "response": "We offer B.Sc., B.Com and B.A."},
        "fees": {"examples": ["what is the fee structure"], "response": "B.Sc. CS costs 85,000 per year."},
        "default": {"response": "I don't understand."},
    }


@pytest.fixture
def vectors():
    """Text to embedding table used by the fake provider."""
    return {
        "hi": [0.0, 1.0, 0.0, 0.0],
        "hello": [1.0, 0.0, 0.0, 0.0],
        "what courses do you offer": [0.0, 0.0, 1.0, 0.0],
        "what is the fee structure": [0.0, 0.0, 0.0, 1.0],
        # cosine 0.85 to "hello", 0.3 to "hi"
        "hello there": [0.85, 0.3, math.sqrt(1 - 0.85 ** 2 - 0.3 ** 2), 0.0],
        # cosine 0.1 to both greeting examples
        "xyz123": [0.1, 0.1, 0.0, math.sqrt(0.98)],
        "which programs are available": [0.0, 0.0, 1.0, 0.0],
    }


@pytest.fixture
def embedding_provider(vectors):
    """Fake provider whose embed() looks texts up in ``vectors``."""
    provider = MagicMock()
    provider.model_name = "fake-embedding-model"
    provider.embed = AsyncMock(side_effect=lambda text: np.array(vectors[text]))
    provider.get_stats.return_value = {"engine_type": "fake", "model_name": "fake-embedding-model"}
    return provider


@pytest.fixture
def matcher(embedding_provider):
    """Unprepared matcher with threshold 0.8 that is always online."""
    return IntentMatcher(embedding_provider, confidence_threshold=0.8, connectivity=StaticConnectivity(True))
