"""Root test fixtures for the trackscout test suite."""

import numpy as np
import pytest

from trackscout.catalog import InMemoryCatalog, TrackMetadata
from trackscout.config import ScoutConfig
from trackscout.search import InMemoryEmbeddingStore, SimilarityEngine


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def toy_store():
    """Three 2-d tracks: A and C nearly parallel, B orthogonal to A."""
    return InMemoryEmbeddingStore({
        "A": [1.0, 0.0],
        "B": [0.0, 1.0],
        "C": [0.9, 0.1],
    })


@pytest.fixture
def sample_embeddings():
    """Dict of 8 tracks with 64-d embeddings."""
    rng = np.random.default_rng(42)
    return {
        f"track_{i:02d}": rng.standard_normal(64)
        for i in range(8)
    }


@pytest.fixture
def sample_store(sample_embeddings):
    return InMemoryEmbeddingStore(sample_embeddings)


@pytest.fixture
def toy_engine(toy_store):
    return SimilarityEngine(toy_store)


@pytest.fixture
def toy_catalog():
    """Catalog knowing tracks A and C, but not B."""
    return InMemoryCatalog(tracks={
        "A": TrackMetadata(id="A", videoId="vid-a", title="Alpha", artist="Ana"),
        "C": TrackMetadata(id="C", videoId="vid-c", title="Gamma", artist="Cal", duration=215),
    })


@pytest.fixture
def isolated_config(tmp_path):
    """ScoutConfig with project_root pointed at tmp_path."""
    config = ScoutConfig()
    config.project_root = tmp_path
    return config
