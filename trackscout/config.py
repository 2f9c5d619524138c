import logging
import math
import os
from pathlib import Path
from typing import Any

METRIC_NAMES = ("cosine", "euclidean", "manhattan")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ScoutConfig:
    """
    Global trackscout configuration.

    Holds query defaults, cache TTLs, catalog settings and server settings.
    Attributes are plain values so tests can override them directly; the
    properties below are what the rest of the package reads.
    """

    def __init__(self):
        # Project structure
        self.project_root = Path(__file__).parent.parent

        # Query defaults
        self.SCOUT_DEFAULT_LIMIT: int = 20
        self.SCOUT_MAX_LIMIT: int = 100
        self.SCOUT_DEFAULT_METRIC: str = 'cosine'

        # Default threshold per metric. Cosine is a similarity in [-1, 1],
        # euclidean/manhattan are distances in [0, inf): one number cannot
        # mean the same thing for both, so each metric gets its own entry.
        self.SCOUT_DEFAULT_THRESHOLDS: dict[str, float] = {
            'cosine': 0.6,
            'euclidean': 0.6,
            'manhattan': 0.6,
        }

        # Cache TTLs (seconds)
        self.SCOUT_SIMILAR_TTL: int = 600
        self.SCOUT_TRACK_TTL: int = 600
        self.SCOUT_ARTIST_TTL: int = 7200  # full discographies change rarely
        self.SCOUT_PLAYLIST_TTL: int = 600
        self.SCOUT_CACHE_MAX_ENTRIES: int | None = None

        # Enrichment fan-out
        self.SCOUT_ENRICH_CONCURRENCY: int = 8

        # Data and catalog
        self.SCOUT_EMBEDDINGS_DIR: str | None = None
        self.SCOUT_CATALOG_URL: str | None = None
        self.SCOUT_CATALOG_TIMEOUT: float = 10.0

        # Server
        self.HOST: str = '0.0.0.0'
        self.PORT: int = 8000
        self.LOG_LEVEL: str = 'INFO'

        # Environment variable overrides (useful for Docker/cluster deployment)
        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides for deployment flexibility."""
        if os.getenv('SCOUT_DEFAULT_LIMIT'):
            self.SCOUT_DEFAULT_LIMIT = int(os.getenv('SCOUT_DEFAULT_LIMIT'))

        if os.getenv('SCOUT_MAX_LIMIT'):
            self.SCOUT_MAX_LIMIT = int(os.getenv('SCOUT_MAX_LIMIT'))

        if os.getenv('SCOUT_DEFAULT_METRIC'):
            self.SCOUT_DEFAULT_METRIC = os.getenv('SCOUT_DEFAULT_METRIC').strip().lower()

        for metric in METRIC_NAMES:
            # Examples: SCOUT_THRESHOLD_COSINE=0.75, SCOUT_THRESHOLD_EUCLIDEAN=1.2
            value = os.getenv(f'SCOUT_THRESHOLD_{metric.upper()}')
            if value:
                self.SCOUT_DEFAULT_THRESHOLDS[metric] = float(value)

        if os.getenv('SCOUT_SIMILAR_TTL'):
            self.SCOUT_SIMILAR_TTL = int(os.getenv('SCOUT_SIMILAR_TTL'))

        if os.getenv('SCOUT_TRACK_TTL'):
            self.SCOUT_TRACK_TTL = int(os.getenv('SCOUT_TRACK_TTL'))

        if os.getenv('SCOUT_ARTIST_TTL'):
            self.SCOUT_ARTIST_TTL = int(os.getenv('SCOUT_ARTIST_TTL'))

        if os.getenv('SCOUT_PLAYLIST_TTL'):
            self.SCOUT_PLAYLIST_TTL = int(os.getenv('SCOUT_PLAYLIST_TTL'))

        if os.getenv('SCOUT_CACHE_MAX_ENTRIES'):
            self.SCOUT_CACHE_MAX_ENTRIES = int(os.getenv('SCOUT_CACHE_MAX_ENTRIES'))

        if os.getenv('SCOUT_ENRICH_CONCURRENCY'):
            self.SCOUT_ENRICH_CONCURRENCY = int(os.getenv('SCOUT_ENRICH_CONCURRENCY'))

        if os.getenv('SCOUT_EMBEDDINGS_DIR'):
            self.SCOUT_EMBEDDINGS_DIR = os.getenv('SCOUT_EMBEDDINGS_DIR')

        if os.getenv('SCOUT_CATALOG_URL'):
            self.SCOUT_CATALOG_URL = os.getenv('SCOUT_CATALOG_URL')

        if os.getenv('SCOUT_CATALOG_TIMEOUT'):
            self.SCOUT_CATALOG_TIMEOUT = float(os.getenv('SCOUT_CATALOG_TIMEOUT'))

        if os.getenv('HOST'):
            self.HOST = os.getenv('HOST')

        if os.getenv('PORT'):
            self.PORT = int(os.getenv('PORT'))

        if os.getenv('LOG_LEVEL'):
            self.LOG_LEVEL = os.getenv('LOG_LEVEL').upper()

    # =========================================================================
    # Query Defaults
    # =========================================================================

    @property
    def default_limit(self) -> int:
        """Result cap used when a request does not pass ``limit``."""
        return self.SCOUT_DEFAULT_LIMIT

    @property
    def max_limit(self) -> int:
        """Largest ``limit`` the request layer accepts."""
        return self.SCOUT_MAX_LIMIT

    @property
    def default_metric(self) -> str:
        return self.SCOUT_DEFAULT_METRIC

    def default_threshold(self, metric: Any) -> float:
        """Default threshold for one metric (enum member or name)."""
        name = getattr(metric, 'value', metric)
        return self.SCOUT_DEFAULT_THRESHOLDS[name]

    # =========================================================================
    # Cache Configuration
    # =========================================================================

    @property
    def similar_ttl(self) -> int:
        return self.SCOUT_SIMILAR_TTL

    @property
    def track_ttl(self) -> int:
        return self.SCOUT_TRACK_TTL

    @property
    def artist_ttl(self) -> int:
        return self.SCOUT_ARTIST_TTL

    @property
    def playlist_ttl(self) -> int:
        return self.SCOUT_PLAYLIST_TTL

    @property
    def cache_max_entries(self) -> int | None:
        return self.SCOUT_CACHE_MAX_ENTRIES

    @property
    def enrich_concurrency(self) -> int:
        """Maximum concurrent catalog lookups while enriching one response."""
        return self.SCOUT_ENRICH_CONCURRENCY

    # =========================================================================
    # Paths and Collaborators
    # =========================================================================

    @property
    def data_root(self) -> Path:
        return self.project_root / "data"

    @property
    def embeddings_dir(self) -> Path:
        """Directory of ``<track_id>.npy`` embedding files."""
        if self.SCOUT_EMBEDDINGS_DIR:
            return Path(self.SCOUT_EMBEDDINGS_DIR)
        return self.data_root / "embeddings"

    @property
    def catalog_url(self) -> str | None:
        return self.SCOUT_CATALOG_URL

    @property
    def catalog_timeout(self) -> float:
        return self.SCOUT_CATALOG_TIMEOUT

    # =========================================================================
    # Validation and Utilities
    # =========================================================================

    def validate_config(self) -> None:
        """Validate trackscout configuration parameters."""
        if self.default_limit <= 0:
            raise ValueError("default_limit must be positive")
        if self.max_limit < self.default_limit:
            raise ValueError("max_limit must be >= default_limit")
        if self.default_metric not in METRIC_NAMES:
            raise ValueError(
                f"Invalid default metric: {self.default_metric}. "
                f"Must be one of {', '.join(METRIC_NAMES)}"
            )

        for metric in METRIC_NAMES:
            threshold = self.SCOUT_DEFAULT_THRESHOLDS.get(metric)
            if threshold is None or not math.isfinite(threshold):
                raise ValueError(f"Default threshold for {metric} must be a finite number")

        for name, ttl in [
            ("similar_ttl", self.similar_ttl),
            ("track_ttl", self.track_ttl),
            ("artist_ttl", self.artist_ttl),
            ("playlist_ttl", self.playlist_ttl),
        ]:
            if ttl < 0:
                raise ValueError(f"{name} must be >= 0")

        if self.cache_max_entries is not None and self.cache_max_entries <= 0:
            raise ValueError("cache_max_entries must be positive")
        if self.enrich_concurrency < 1:
            raise ValueError("enrich_concurrency must be at least 1")
        if self.catalog_timeout <= 0:
            raise ValueError("catalog_timeout must be positive")

    def get_cache_info(self) -> dict[str, Any]:
        """Get cache settings for debugging."""
        return {
            'similar_ttl': self.similar_ttl,
            'track_ttl': self.track_ttl,
            'artist_ttl': self.artist_ttl,
            'playlist_ttl': self.playlist_ttl,
            'max_entries': self.cache_max_entries,
        }


def configure_logging(level: str = 'INFO') -> None:
    """Configure root logging for the CLI and the API server."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


# ============================================================================
# Global Configuration Instance
# ============================================================================

scout_config = ScoutConfig()
