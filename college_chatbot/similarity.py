"""
Vector helpers used by the matcher.
"""

import numpy as np
from typing import Sequence, Union

Vector = Union[np.ndarray, Sequence[float]]


def as_vector(values: Vector) -> np.ndarray:
    """Convert an embedding to a read-only 1-D float64 array."""
    vector = np.array(values, dtype=np.float64).reshape(-1)
    vector.setflags(write=False)
    return vector


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        ValueError: if the vectors differ in length
    """
    a = np.asarray(a, dtype=np.float64).reshape(-1)
    b = np.asarray(b, dtype=np.float64).reshape(-1)
    if a.shape != b.shape:
        raise ValueError(f"Cannot compare vectors of length {a.shape[0]} and {b.shape[0]}")

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm)
