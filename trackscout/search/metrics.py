"""
Similarity metrics for track embeddings.

Cosine is a similarity in [-1, 1] (higher is closer); euclidean and manhattan
are distances in [0, inf) (lower is closer). Pairwise helpers take two
vectors; ``score_matrix`` scores one query against many candidates at once.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import numpy as np

from ..errors import InvalidArgument

ArrayLike = Sequence[float] | np.ndarray


class SimilarityMetric(str, Enum):
    """Supported metrics. Closed set: unknown names are rejected, never defaulted."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"

    @property
    def higher_is_better(self) -> bool:
        """True when the score is a similarity, False when it is a distance."""
        return self is SimilarityMetric.COSINE


def parse_metric(value: SimilarityMetric | str) -> SimilarityMetric:
    """Normalize user metric input into a `SimilarityMetric`."""
    if isinstance(value, SimilarityMetric):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in SimilarityMetric._value2member_map_:
            return SimilarityMetric(key)
        allowed = ", ".join(m.value for m in SimilarityMetric)
        raise InvalidArgument(f"Unsupported metric: {value!r}. Supported: {allowed}")
    raise InvalidArgument(f"Unsupported metric type: {type(value).__name__}")


def _pair(a: ArrayLike, b: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise InvalidArgument(
            f"Vector dimensions must match: {va.shape[-1] if va.ndim else 0} "
            f"vs {vb.shape[-1] if vb.ndim else 0}"
        )
    return va, vb


def cosine_similarity(a: ArrayLike, b: ArrayLike) -> float:
    """dot(a, b) / (|a| * |b|) clipped to [-1, 1]; 0.0 when either vector has zero norm."""
    va, vb = _pair(a, b)
    magnitude = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if magnitude == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / magnitude, -1.0, 1.0))


def euclidean_distance(a: ArrayLike, b: ArrayLike) -> float:
    va, vb = _pair(a, b)
    return float(np.sqrt(np.sum((va - vb) ** 2)))


def manhattan_distance(a: ArrayLike, b: ArrayLike) -> float:
    va, vb = _pair(a, b)
    return float(np.sum(np.abs(va - vb)))


def score_matrix(
    metric: SimilarityMetric,
    query: np.ndarray,
    matrix: np.ndarray,
) -> np.ndarray:
    """
    Score one query vector against every row of a candidate matrix.

    Args:
        metric: Metric to apply
        query: Array of shape (dim,)
        matrix: Array of shape (n_candidates, dim)

    Returns:
        Array of shape (n_candidates,) with one score per row
    """
    query = np.asarray(query, dtype=np.float64)
    matrix = np.asarray(matrix, dtype=np.float64)

    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        raise InvalidArgument(
            f"Expected candidate matrix of shape [n, {query.shape[0]}], got {matrix.shape}"
        )
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    if metric is SimilarityMetric.COSINE:
        query_norm = np.linalg.norm(query)
        row_norms = np.linalg.norm(matrix, axis=1)
        denominators = row_norms * query_norm
        dots = matrix @ query
        scores = np.zeros(matrix.shape[0], dtype=np.float64)
        nonzero = denominators > 0
        scores[nonzero] = dots[nonzero] / denominators[nonzero]
        # Rounding can push |cos| a hair past 1.0 for parallel vectors
        return np.clip(scores, -1.0, 1.0)

    diffs = matrix - query
    if metric is SimilarityMetric.EUCLIDEAN:
        return np.sqrt(np.sum(diffs * diffs, axis=1))
    if metric is SimilarityMetric.MANHATTAN:
        return np.sum(np.abs(diffs), axis=1)

    raise InvalidArgument(f"Unsupported metric: {metric!r}")

