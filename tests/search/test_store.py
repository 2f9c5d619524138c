"""Tests for trackscout.search.store."""

import numpy as np
import pytest

from trackscout.errors import InvalidArgument, NotFound
from trackscout.search.store import InMemoryEmbeddingStore, require

pytestmark = pytest.mark.unit


class TestConstruction:
    def test_dimension_and_length(self, sample_store):
        assert len(sample_store) == 8
        assert sample_store.dimension == 64

    def test_empty_store_has_no_dimension(self):
        store = InMemoryEmbeddingStore()
        assert len(store) == 0
        assert store.dimension is None

    def test_rejects_mixed_dimensions(self):
        with pytest.raises(InvalidArgument, match="expected 2"):
            InMemoryEmbeddingStore({"a": [1, 0], "b": [1, 0, 0]})

    def test_rejects_non_finite(self):
        with pytest.raises(InvalidArgument, match="non-finite"):
            InMemoryEmbeddingStore({"a": [1.0, float("nan")]})

    def test_rejects_empty_vector(self):
        with pytest.raises(InvalidArgument, match="non-empty"):
            InMemoryEmbeddingStore({"a": []})

    def test_vectors_are_read_only(self, toy_store):
        with pytest.raises(ValueError):
            toy_store.get("A")[0] = 5.0


class TestLookup:
    def test_get_absent_returns_none(self, toy_store):
        assert toy_store.get("Z") is None

    def test_contains(self, toy_store):
        assert "A" in toy_store
        assert "Z" not in toy_store

    def test_all_is_restartable(self, toy_store):
        first = [track_id for track_id, _ in toy_store.all()]
        second = [track_id for track_id, _ in toy_store.all()]
        assert sorted(first) == sorted(second) == ["A", "B", "C"]

    def test_track_ids_sorted(self, toy_store):
        assert toy_store.track_ids() == ["A", "B", "C"]

    def test_require_raises_not_found(self, toy_store):
        with pytest.raises(NotFound, match="Z"):
            require(toy_store, "Z")


class TestCopyOnWrite:
    def test_snapshot_unaffected_by_upsert(self, toy_store):
        snapshot = toy_store.snapshot()
        toy_store.upsert("D", [0.5, 0.5])

        assert "D" not in snapshot
        assert "D" in toy_store
        assert len(snapshot) == 3

    def test_snapshot_unaffected_by_remove(self, toy_store):
        snapshot = toy_store.snapshot()
        assert toy_store.remove("B") is True

        assert "B" in snapshot
        assert "B" not in toy_store

    def test_remove_absent(self, toy_store):
        assert toy_store.remove("Z") is False

    def test_upsert_rejects_wrong_dimension(self, toy_store):
        with pytest.raises(InvalidArgument):
            toy_store.upsert("D", [1.0, 2.0, 3.0])

    def test_upsert_sets_dimension_on_empty_store(self):
        store = InMemoryEmbeddingStore()
        store.upsert("a", [1.0, 2.0, 3.0])
        assert store.dimension == 3

    def test_snapshot_is_immutable(self, toy_store):
        with pytest.raises(TypeError):
            toy_store.snapshot()["X"] = np.zeros(2)


class TestFromDirectory:
    def test_loads_one_vector_per_file(self, tmp_path):
        rng = np.random.default_rng(42)
        np.save(tmp_path / "track_b.npy", rng.standard_normal(16))
        np.save(tmp_path / "track_a.npy", rng.standard_normal(16))

        store = InMemoryEmbeddingStore.from_directory(tmp_path)

        assert store.track_ids() == ["track_a", "track_b"]
        assert store.dimension == 16

    def test_layered_features_are_mean_pooled(self, tmp_path):
        layers = np.random.default_rng(1).standard_normal((13, 32)).astype(np.float32)
        np.save(tmp_path / "track.npy", layers)

        store = InMemoryEmbeddingStore.from_directory(tmp_path)

        np.testing.assert_allclose(store.get("track"), layers.mean(axis=0), atol=1e-6)

    def test_segment_features_pool_over_all_leading_axes(self, tmp_path):
        segments = np.random.default_rng(3).standard_normal((4, 13, 8))
        np.save(tmp_path / "track.npy", segments)

        store = InMemoryEmbeddingStore.from_directory(tmp_path)

        np.testing.assert_allclose(store.get("track"), segments.reshape(-1, 8).mean(axis=0))

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryEmbeddingStore.from_directory(tmp_path / "nope")

    def test_empty_directory_raises(self, tmp_path):
        with pytest.raises(ValueError, match="No \\*.npy files found"):
            InMemoryEmbeddingStore.from_directory(tmp_path)
