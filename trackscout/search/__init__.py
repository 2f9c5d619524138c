"""
Track Similarity Search

Exact brute-force nearest-neighbour ranking over precomputed track embeddings.

Public API:
    SimilarityEngine - Rank stored tracks against a query track
    SimilarityQuery - Validated query (track id, metric, threshold, limit)
    VectorQuery - Validated query for a caller-supplied vector
    SimilarityResult - One ranked neighbour
    SimilarityMetric - cosine / euclidean / manhattan
    InMemoryEmbeddingStore - Copy-on-write in-memory embedding store
"""

from .metrics import (
    SimilarityMetric,
    cosine_similarity,
    euclidean_distance,
    manhattan_distance,
    parse_metric,
    score_matrix,
)
from .similarity import SimilarityEngine, SimilarityQuery, SimilarityResult, VectorQuery
from .store import EmbeddingStore, InMemoryEmbeddingStore, as_vector, require

__all__ = [
    'SimilarityEngine',
    'SimilarityQuery',
    'SimilarityResult',
    'VectorQuery',
    'SimilarityMetric',
    'parse_metric',
    'cosine_similarity',
    'euclidean_distance',
    'manhattan_distance',
    'score_matrix',
    'EmbeddingStore',
    'InMemoryEmbeddingStore',
    'as_vector',
    'require',
]
