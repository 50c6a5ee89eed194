"""Distance functions between embedding vectors.

Every metric is expressed as a distance where smaller means closer, so
results from any metric sort the same way.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Literal

import numpy as np

from vectorsearch.core.errors import DimensionMismatch

Metric = Literal["cosine", "euclidean", "inner_product"]
Vector = Sequence[float] | np.ndarray
DistanceFunction = Callable[[Vector, Vector], float]

# Returned by cosine_distance when either vector has zero norm.
MAX_COSINE_DISTANCE = 2.0


def _as_pair(a: Vector, b: Vector) -> tuple[np.ndarray, np.ndarray]:
    x = np.asarray(a, dtype=np.float64)
    y = np.asarray(b, dtype=np.float64)
    if x.shape != y.shape:
        raise DimensionMismatch(x.shape[0] if x.ndim else 0, y.shape[0] if y.ndim else 0)
    return x, y


def cosine_distance(a: Vector, b: Vector) -> float:
    """Compute ``1 - cos(a, b)``, clamped into ``[0, 2]``.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Cosine distance, or ``MAX_COSINE_DISTANCE`` if either vector is zero

    Example:
        >>> cosine_distance([1.0, 0.0], [0.0, 1.0])
        1.0
    """
    x, y = _as_pair(a, b)
    norm_x = float(np.linalg.norm(x))
    norm_y = float(np.linalg.norm(y))
    if norm_x == 0.0 or norm_y == 0.0:
        return MAX_COSINE_DISTANCE
    distance = 1.0 - float(np.dot(x, y)) / (norm_x * norm_y)
    return min(max(distance, 0.0), MAX_COSINE_DISTANCE)


def euclidean_distance(a: Vector, b: Vector) -> float:
    """Compute the L2 distance between two vectors."""
    x, y = _as_pair(a, b)
    return float(np.linalg.norm(x - y))


def inner_product_distance(a: Vector, b: Vector) -> float:
    """Compute the negated dot product, so larger products rank closer."""
    x, y = _as_pair(a, b)
    return -float(np.dot(x, y))


DISTANCE_FUNCTIONS: dict[str, DistanceFunction] = {
    "cosine": cosine_distance,
    "euclidean": euclidean_distance,
    "inner_product": inner_product_distance,
}


def get_distance_function(metric: str) -> DistanceFunction:
    """Look up the distance function for a metric name."""
    try:
        return DISTANCE_FUNCTIONS[metric]
    except KeyError:
        raise ValueError(
            f"metric must be one of {sorted(DISTANCE_FUNCTIONS)}, got {metric!r}"
        ) from None


def to_similarity(metric: str, distance: float) -> float:
    """Convert a distance into a similarity score where larger is closer.

    Example:
        >>> to_similarity("cosine", 0.25)
        0.75
        >>> to_similarity("euclidean", 1.0)
        0.5
    """
    if metric == "cosine":
        return 1.0 - distance
    if metric == "inner_product":
        return -distance
    if metric == "euclidean":
        return 1.0 / (1.0 + distance)
    raise ValueError(f"unknown metric {metric!r}")
