"""
Exact similarity search over an embedding store.

Brute-force ranking: every stored track is scored against the query (a stored
track, or a caller-supplied vector) under the requested metric, filtered by
the threshold, sorted (ties broken by ascending track id) and cut to
``limit``.

Usage:
    from trackscout.search import InMemoryEmbeddingStore, SimilarityEngine, SimilarityQuery

    store = InMemoryEmbeddingStore({"a": [1, 0], "b": [0, 1], "c": [0.9, 0.1]})
    engine = SimilarityEngine(store)
    results = engine.find_similar(
        SimilarityQuery(query_track_id="a", metric="cosine", threshold=0.5, limit=10)
    )
    nearest = engine.search_vector([0.8, 0.2], metric="euclidean", threshold=0.5)
"""

from __future__ import annotations

import hashlib
import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from ..config import ScoutConfig, scout_config
from ..errors import InternalFault, InvalidArgument, MissingParameter
from .metrics import SimilarityMetric, parse_metric, score_matrix
from .store import EmbeddingSnapshot, EmbeddingStore, as_vector, require

logger = logging.getLogger(__name__)


def _check_ranking(metric: Any, threshold: Any, limit: Any) -> tuple[SimilarityMetric, float, int]:
    """Validate the metric/threshold/limit triple shared by every query type."""
    metric = parse_metric(metric)

    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral):
        raise InvalidArgument(f"limit must be an integer, got {limit!r}")
    if limit <= 0:
        raise InvalidArgument(f"limit must be positive, got {limit}")

    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
        raise InvalidArgument(f"threshold must be a number, got {threshold!r}")
    if not math.isfinite(threshold):
        raise InvalidArgument(f"threshold must be finite, got {threshold}")

    return metric, float(threshold), int(limit)


def _resolve_params(
    limit: Any,
    threshold: Any,
    metric: Any,
    config: ScoutConfig,
) -> tuple[SimilarityMetric, float, int]:
    """
    Apply configured defaults to raw request parameters.

    A bad value from the caller is InvalidArgument; a bad configured default
    is a server fault, not the caller's.
    """
    if metric is None:
        try:
            resolved_metric = parse_metric(config.default_metric)
        except InvalidArgument as exc:
            raise InternalFault(f"Configured default metric is invalid: {config.default_metric!r}") from exc
    else:
        resolved_metric = parse_metric(metric)

    if limit is None:
        resolved_limit = config.default_limit
    else:
        resolved_limit = _parse_int("limit", limit)
        if resolved_limit > config.max_limit:
            raise InvalidArgument(
                f"limit must be no more than {config.max_limit}, got {resolved_limit}"
            )

    if threshold is None:
        resolved_threshold = config.default_threshold(resolved_metric)
    else:
        resolved_threshold = _parse_float("threshold", threshold)

    return resolved_metric, resolved_threshold, resolved_limit


@dataclass(frozen=True)
class SimilarityQuery:
    """Validated, immutable similarity request for a stored track."""

    query_track_id: str
    metric: SimilarityMetric = SimilarityMetric.COSINE
    threshold: float = 0.6
    limit: int = 20

    def __post_init__(self):
        if not isinstance(self.query_track_id, str) or not self.query_track_id.strip():
            raise MissingParameter("trackId parameter required")

        metric, threshold, limit = _check_ranking(self.metric, self.threshold, self.limit)
        object.__setattr__(self, "metric", metric)
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "limit", limit)

    @classmethod
    def from_params(
        cls,
        track_id: str | None,
        limit: int | str | None = None,
        threshold: float | str | None = None,
        metric: SimilarityMetric | str | None = None,
        config: ScoutConfig | None = None,
    ) -> "SimilarityQuery":
        """
        Build a query from raw request parameters.

        Missing optional values fall back to the configured defaults; present
        values must parse, otherwise InvalidArgument is raised.
        """
        config = config or scout_config

        if track_id is None or (isinstance(track_id, str) and not track_id.strip()):
            raise MissingParameter("trackId parameter required")

        metric, threshold, limit = _resolve_params(limit, threshold, metric, config)
        return cls(query_track_id=track_id, metric=metric, threshold=threshold, limit=limit)

    def passes(self, score: float) -> bool:
        """Whether a score clears the threshold in this metric's direction."""
        return _passes(self.metric, self.threshold, score)

    def cache_params(self) -> dict[str, Any]:
        """Fields that make up this query's cache identity."""
        return {
            "track_id": self.query_track_id,
            "metric": self.metric.value,
            "threshold": self.threshold,
            "limit": self.limit,
        }


@dataclass(frozen=True, eq=False)
class VectorQuery:
    """Validated, immutable request ranking the store against a supplied vector."""

    vector: np.ndarray
    metric: SimilarityMetric = SimilarityMetric.COSINE
    threshold: float = 0.6
    limit: int = 20

    def __post_init__(self):
        object.__setattr__(self, "vector", as_vector("query vector", self.vector))

        metric, threshold, limit = _check_ranking(self.metric, self.threshold, self.limit)
        object.__setattr__(self, "metric", metric)
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "limit", limit)

    @classmethod
    def from_params(
        cls,
        vector: Sequence[float] | np.ndarray | None,
        limit: int | str | None = None,
        threshold: float | str | None = None,
        metric: SimilarityMetric | str | None = None,
        config: ScoutConfig | None = None,
    ) -> "VectorQuery":
        """Build a vector query from raw request parameters (same defaults as track queries)."""
        config = config or scout_config

        if vector is None:
            raise MissingParameter("vector parameter required")

        metric, threshold, limit = _resolve_params(limit, threshold, metric, config)
        return cls(vector=vector, metric=metric, threshold=threshold, limit=limit)

    @property
    def dimension(self) -> int:
        return self.vector.shape[0]

    def passes(self, score: float) -> bool:
        return _passes(self.metric, self.threshold, score)

    def cache_params(self) -> dict[str, Any]:
        """Cache identity; the vector enters as a digest of its float64 bytes."""
        return {
            "vector": hashlib.md5(self.vector.tobytes()).hexdigest(),
            "dimension": self.dimension,
            "metric": self.metric.value,
            "threshold": self.threshold,
            "limit": self.limit,
        }


@dataclass(frozen=True)
class SimilarityResult:
    """One ranked neighbour: a similarity for cosine, a distance otherwise."""

    track_id: str
    score: float
    metric: SimilarityMetric

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackId": self.track_id,
            "score": self.score,
            "metric": self.metric.value,
        }


def _passes(metric: SimilarityMetric, threshold: float, score: float) -> bool:
    if metric.higher_is_better:
        return score >= threshold
    return score <= threshold


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise InvalidArgument(f"{name} must be an integer, got {value!r}") from exc
    raise InvalidArgument(f"{name} must be an integer, got {value!r}")


def _parse_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise InvalidArgument(f"{name} must be a number, got {value!r}") from exc
    raise InvalidArgument(f"{name} must be a number, got {value!r}")


class SimilarityEngine:
    """
    Exact nearest-neighbour ranking over an embedding store.

    Stateless apart from the store reference; safe to share between
    concurrent requests.
    """

    def __init__(self, store: EmbeddingStore):
        self.store = store

    def find_similar(self, query: SimilarityQuery) -> list[SimilarityResult]:
        """
        Find tracks similar to the query track.

        Args:
            query: Validated similarity query

        Returns:
            Results sorted best-first (descending similarity for cosine,
            ascending distance otherwise), ties by ascending track id,
            at most ``query.limit`` long

        Raises:
            NotFound: The query track has no embedding
            InvalidArgument: The query embedding does not match the store's dimensionality
        """
        snapshot = self.store.snapshot()
        query_vector = require(snapshot, query.query_track_id)
        self._check_dimension(query_vector, f"Embedding for '{query.query_track_id}'")

        return self._rank(
            snapshot,
            query_vector,
            query.metric,
            query.threshold,
            query.limit,
            label=f"'{query.query_track_id}'",
            exclude=query.query_track_id,
        )

    def find_nearest(self, query: VectorQuery) -> list[SimilarityResult]:
        """
        Rank every stored track against a caller-supplied vector.

        Same threshold, ordering and tie-break rules as ``find_similar``;
        nothing is excluded.

        Raises:
            InvalidArgument: The vector does not match the store's dimensionality
        """
        snapshot = self.store.snapshot()
        if not snapshot:
            return []
        self._check_dimension(query.vector, "Query vector")

        return self._rank(
            snapshot,
            query.vector,
            query.metric,
            query.threshold,
            query.limit,
            label=f"a {query.dimension}-d query vector",
        )

    def search_vector(
        self,
        vector: Sequence[float] | np.ndarray,
        metric: SimilarityMetric | str = SimilarityMetric.COSINE,
        threshold: float = 0.6,
        limit: int = 20,
    ) -> list[SimilarityResult]:
        """Convenience wrapper: validate a vector query, then rank."""
        return self.find_nearest(VectorQuery(vector=vector, metric=metric, threshold=threshold, limit=limit))

    def find_similar_to(self, track_id: str, **params: Any) -> list[SimilarityResult]:
        """Convenience wrapper: build the query from raw params, then search."""
        return self.find_similar(SimilarityQuery.from_params(track_id, **params))

    def _check_dimension(self, vector: np.ndarray, what: str) -> None:
        expected_dim = self.store.dimension
        if expected_dim is not None and vector.shape[0] != expected_dim:
            raise InvalidArgument(
                f"{what} has dimension {vector.shape[0]}; store expects {expected_dim}"
            )

    def _rank(
        self,
        snapshot: EmbeddingSnapshot,
        query_vector: np.ndarray,
        metric: SimilarityMetric,
        threshold: float,
        limit: int,
        label: str,
        exclude: str | None = None,
    ) -> list[SimilarityResult]:
        candidate_ids: list[str] = []
        candidate_vectors: list[np.ndarray] = []
        skipped: list[str] = []

        for track_id, vector in snapshot.items():
            if track_id == exclude:
                continue
            if vector.shape != query_vector.shape:
                skipped.append(track_id)
                continue
            candidate_ids.append(track_id)
            candidate_vectors.append(vector)

        if skipped:
            logger.warning(
                f"Skipped {len(skipped)} embeddings with mismatched dimension while "
                f"searching for {label}: {sorted(skipped)[:10]}"
            )

        if not candidate_ids:
            return []

        scores = score_matrix(metric, query_vector, np.vstack(candidate_vectors))

        passing = [
            (track_id, float(score))
            for track_id, score in zip(candidate_ids, scores)
            if _passes(metric, threshold, score)
        ]

        if metric.higher_is_better:
            passing.sort(key=lambda item: (-item[1], item[0]))
        else:
            passing.sort(key=lambda item: (item[1], item[0]))

        results = [
            SimilarityResult(track_id=track_id, score=score, metric=metric)
            for track_id, score in passing[:limit]
        ]

        logger.debug(
            f"{metric.value} search for {label}: {len(candidate_ids)} candidates, "
            f"{len(passing)} passed threshold {threshold}, returning {len(results)}"
        )
        return results
