"""Embedding store interface and the in-memory, copy-on-write implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Protocol, Sequence

import numpy as np
from tqdm import tqdm

from ..errors import InvalidArgument, NotFound

logger = logging.getLogger(__name__)

EmbeddingSnapshot = Mapping[str, np.ndarray]


class EmbeddingStore(Protocol):
    """Protocol for track embedding retrieval."""

    @property
    def dimension(self) -> int | None:
        """Expected dimensionality of every vector, or None when empty."""
        ...

    def get(self, track_id: str) -> np.ndarray | None:
        """Return the embedding for one track, or None when absent."""
        ...

    def all(self) -> Iterator[tuple[str, np.ndarray]]:
        """Return a fresh iterator over (track_id, embedding) pairs."""
        ...

    def snapshot(self) -> EmbeddingSnapshot:
        """Return an unchanging view of the current vector set."""
        ...

    def __len__(self) -> int:
        ...


def as_vector(label: str, values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Convert one raw embedding into a read-only 1D float64 vector."""
    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Embedding for {label!r} is not numeric") from exc

    if vector.ndim != 1 or vector.shape[0] == 0:
        raise InvalidArgument(
            f"Embedding for {label!r} must be a non-empty 1D vector, got shape {vector.shape}"
        )
    if not np.all(np.isfinite(vector)):
        raise InvalidArgument(f"Embedding for {label!r} contains non-finite values")

    vector.setflags(write=False)
    return vector


def _pool_to_vector(raw: np.ndarray, source_name: str) -> np.ndarray:
    """
    Collapse a stored feature array to exactly one 1D vector.

    Supported shapes:
    - [dim]: used directly
    - [layers, dim], [segments, layers, dim], ...: mean over every leading axis
    """
    features = np.asarray(raw)
    if features.ndim == 0:
        raise ValueError(f"Unsupported scalar features in {source_name}")
    if features.ndim == 1:
        return features
    return features.reshape(-1, features.shape[-1]).mean(axis=0)


class InMemoryEmbeddingStore:
    """
    Read-mostly embedding store held in memory.

    Updates never mutate the published mapping: ``upsert`` and ``remove``
    build a new dict and swap the reference, so a similarity query that took
    a snapshot keeps seeing the same vector set until it finishes.
    """

    def __init__(self, embeddings: Mapping[str, Sequence[float] | np.ndarray] | None = None):
        vectors: dict[str, np.ndarray] = {}
        dimension: int | None = None

        for track_id, values in (embeddings or {}).items():
            vector = as_vector(track_id, values)
            if dimension is None:
                dimension = vector.shape[0]
            elif vector.shape[0] != dimension:
                raise InvalidArgument(
                    f"Embedding for {track_id!r} has dimension {vector.shape[0]}; "
                    f"expected {dimension}"
                )
            vectors[track_id] = vector

        self._dimension = dimension
        self._vectors: EmbeddingSnapshot = MappingProxyType(vectors)

    @classmethod
    def from_directory(
        cls,
        embeddings_dir: str | Path,
        pattern: str = "*.npy",
        show_progress: bool = False,
    ) -> "InMemoryEmbeddingStore":
        """
        Load one embedding per ``<track_id>.npy`` file.

        Args:
            embeddings_dir: Directory containing .npy feature files
            pattern: Glob for feature files
            show_progress: Show a progress bar while loading

        Returns:
            Store keyed by file stem
        """
        embeddings_dir = Path(embeddings_dir)

        if not embeddings_dir.exists():
            raise FileNotFoundError(f"Embeddings directory not found: {embeddings_dir}")

        feature_files = sorted(embeddings_dir.glob(pattern))
        if not feature_files:
            raise ValueError(f"No {pattern} files found in {embeddings_dir}")

        embeddings: dict[str, np.ndarray] = {}
        for feature_file in tqdm(feature_files, desc="Loading embeddings", disable=not show_progress):
            embeddings[feature_file.stem] = _pool_to_vector(np.load(feature_file), feature_file.name)

        store = cls(embeddings)
        logger.info(f"Loaded {len(store)} track embeddings with {store.dimension} dimensions")
        return store

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def get(self, track_id: str) -> np.ndarray | None:
        return self._vectors.get(track_id)

    def all(self) -> Iterator[tuple[str, np.ndarray]]:
        # Published snapshots are never mutated, so iterating one lazily is safe
        return iter(self._vectors.items())

    def snapshot(self) -> EmbeddingSnapshot:
        return self._vectors

    def track_ids(self) -> list[str]:
        return sorted(self._vectors)

    def upsert(self, track_id: str, values: Sequence[float] | np.ndarray) -> None:
        """Insert or replace one embedding by publishing a new snapshot."""
        vector = as_vector(track_id, values)
        if self._dimension is not None and vector.shape[0] != self._dimension:
            raise InvalidArgument(
                f"Embedding for {track_id!r} has dimension {vector.shape[0]}; "
                f"expected {self._dimension}"
            )

        updated = dict(self._vectors)
        updated[track_id] = vector
        self._vectors = MappingProxyType(updated)
        if self._dimension is None:
            self._dimension = vector.shape[0]

    def remove(self, track_id: str) -> bool:
        """Drop one embedding; returns False when it was not present."""
        if track_id not in self._vectors:
            return False
        updated = dict(self._vectors)
        del updated[track_id]
        self._vectors = MappingProxyType(updated)
        return True

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._vectors


def require(store: EmbeddingStore | EmbeddingSnapshot, track_id: str) -> np.ndarray:
    """Return the embedding for ``track_id`` or raise NotFound."""
    vector = store.get(track_id)
    if vector is None:
        raise NotFound(f"Similar tracks unavailable for track '{track_id}': no embedding")
    return vector
