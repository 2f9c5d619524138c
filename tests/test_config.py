"""Tests for trackscout.config.ScoutConfig."""

import pytest

from trackscout.config import ScoutConfig
from trackscout.search import SimilarityMetric

pytestmark = pytest.mark.unit


class TestDefaults:
    def test_default_limit(self):
        assert ScoutConfig().default_limit == 20

    def test_default_metric_is_cosine(self):
        assert ScoutConfig().default_metric == "cosine"

    def test_default_thresholds_are_per_metric(self):
        config = ScoutConfig()
        for metric in SimilarityMetric:
            assert config.default_threshold(metric) == 0.6

    def test_default_threshold_accepts_metric_name(self):
        assert ScoutConfig().default_threshold("euclidean") == 0.6

    def test_artist_ttl_longer_than_similar_ttl(self):
        config = ScoutConfig()
        assert config.similar_ttl == 600
        assert config.artist_ttl == 7200

    def test_default_catalog_url_is_none(self, monkeypatch):
        monkeypatch.delenv("SCOUT_CATALOG_URL", raising=False)
        assert ScoutConfig().catalog_url is None

    def test_embeddings_dir_under_project_root(self, isolated_config, tmp_path):
        isolated_config.SCOUT_EMBEDDINGS_DIR = None
        assert isolated_config.embeddings_dir == tmp_path / "data" / "embeddings"


class TestEnvOverrides:
    def test_limit_override(self, monkeypatch):
        monkeypatch.setenv("SCOUT_DEFAULT_LIMIT", "5")
        assert ScoutConfig().default_limit == 5

    def test_metric_override_is_normalized(self, monkeypatch):
        monkeypatch.setenv("SCOUT_DEFAULT_METRIC", " Manhattan ")
        assert ScoutConfig().default_metric == "manhattan"

    def test_threshold_override_only_touches_one_metric(self, monkeypatch):
        monkeypatch.setenv("SCOUT_THRESHOLD_EUCLIDEAN", "1.5")
        config = ScoutConfig()
        assert config.default_threshold(SimilarityMetric.EUCLIDEAN) == 1.5
        assert config.default_threshold(SimilarityMetric.COSINE) == 0.6

    def test_embeddings_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCOUT_EMBEDDINGS_DIR", str(tmp_path))
        assert ScoutConfig().embeddings_dir == tmp_path

    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert ScoutConfig().LOG_LEVEL == "DEBUG"


class TestValidation:
    def test_validate_passes_with_defaults(self, isolated_config):
        isolated_config.validate_config()

    def test_validate_rejects_zero_limit(self, isolated_config):
        isolated_config.SCOUT_DEFAULT_LIMIT = 0
        with pytest.raises(ValueError, match="default_limit must be positive"):
            isolated_config.validate_config()

    def test_validate_rejects_max_below_default(self, isolated_config):
        isolated_config.SCOUT_MAX_LIMIT = 10
        with pytest.raises(ValueError, match="max_limit"):
            isolated_config.validate_config()

    def test_validate_rejects_unknown_metric(self, isolated_config):
        isolated_config.SCOUT_DEFAULT_METRIC = "quantum"
        with pytest.raises(ValueError, match="Invalid default metric"):
            isolated_config.validate_config()

    def test_validate_rejects_non_finite_threshold(self, isolated_config):
        isolated_config.SCOUT_DEFAULT_THRESHOLDS["manhattan"] = float("inf")
        with pytest.raises(ValueError, match="manhattan"):
            isolated_config.validate_config()

    def test_validate_rejects_negative_ttl(self, isolated_config):
        isolated_config.SCOUT_ARTIST_TTL = -1
        with pytest.raises(ValueError, match="artist_ttl"):
            isolated_config.validate_config()

    def test_validate_rejects_zero_concurrency(self, isolated_config):
        isolated_config.SCOUT_ENRICH_CONCURRENCY = 0
        with pytest.raises(ValueError, match="enrich_concurrency"):
            isolated_config.validate_config()
