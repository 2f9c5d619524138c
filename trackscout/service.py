"""
Discovery service: similar-track and vector search behind the cache, plus
cached catalog lookups.

One long-lived instance can serve every request; the embedding store,
catalog client and cache are injected rather than created per call.
"""
import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .cache import TTLCache, generate_cache_key
from .catalog.client import CatalogClient, HttpCatalogClient, InMemoryCatalog
from .catalog.models import ArtistComplete, Playlist, TrackMetadata
from .config import ScoutConfig, scout_config
from .enrichment import enrich_results
from .errors import MissingParameter, NotFound
from .search.similarity import SimilarityEngine, SimilarityQuery, SimilarityResult, VectorQuery
from .search.store import InMemoryEmbeddingStore

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Async service for track discovery and catalog lookups."""

    def __init__(
        self,
        engine: SimilarityEngine,
        catalog: CatalogClient,
        cache: Optional[TTLCache] = None,
        config: Optional[ScoutConfig] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize with injected collaborators.

        Args:
            engine: Similarity engine over the embedding store
            catalog: Catalog client used for metadata lookups
            cache: Shared cache; a fresh TTLCache is created when omitted
            config: Configuration; the global instance when omitted
            executor: Executor for CPU-bound ranking; the loop default when omitted
        """
        self.config = config or scout_config
        self.engine = engine
        self.catalog = catalog
        self.cache = cache if cache is not None else TTLCache(
            default_ttl=self.config.similar_ttl,
            max_entries=self.config.cache_max_entries,
        )
        self._executor = executor
        logger.info(f"DiscoveryService initialized with {len(engine.store)} embeddings")

    @classmethod
    def from_config(cls, config: Optional[ScoutConfig] = None) -> "DiscoveryService":
        """Build the default service: embeddings from disk, HTTP or empty catalog."""
        config = config or scout_config

        if config.embeddings_dir.exists() and any(config.embeddings_dir.glob("*.npy")):
            store = InMemoryEmbeddingStore.from_directory(config.embeddings_dir)
        else:
            logger.warning(f"No embeddings found in {config.embeddings_dir}; starting empty")
            store = InMemoryEmbeddingStore()

        if config.catalog_url:
            catalog = HttpCatalogClient(config.catalog_url, timeout=config.catalog_timeout)
        else:
            logger.warning("No catalog URL configured; track metadata will be empty")
            catalog = InMemoryCatalog()

        return cls(SimilarityEngine(store), catalog, config=config)

    # =========================================================================
    # Similar tracks
    # =========================================================================

    async def similar_tracks(
        self,
        track_id: Optional[str],
        limit: Any = None,
        threshold: Any = None,
        metric: Any = None,
    ) -> Dict[str, Any]:
        """
        Find tracks similar to ``track_id`` and attach catalog metadata.

        Args:
            track_id: Query track identifier (required)
            limit: Result cap, int or numeric string (default from config)
            threshold: Metric-relative cutoff, float or numeric string
            metric: cosine, euclidean or manhattan (default from config)

        Returns:
            Dictionary with the resolved query and the enriched results

        Raises:
            MissingParameter: track_id absent
            InvalidArgument: malformed limit, threshold or metric
            NotFound: the query track has no embedding
        """
        query = SimilarityQuery.from_params(track_id, limit, threshold, metric, config=self.config)
        cache_key = generate_cache_key("tracks-similar", query.cache_params())

        logger.info(
            f"Finding up to {query.limit} tracks similar to {query.query_track_id} "
            f"({query.metric.value}, threshold {query.threshold})"
        )

        results = await self.cache.get_or_compute(
            cache_key,
            lambda: self._run_ranking(self.engine.find_similar, query),
            ttl_seconds=self.config.similar_ttl,
        )

        enriched = await enrich_results(
            results,
            self.track_metadata,
            max_concurrency=self.config.enrich_concurrency,
        )

        return {
            "trackId": query.query_track_id,
            "metric": query.metric.value,
            "threshold": query.threshold,
            "limit": query.limit,
            "count": len(enriched),
            "results": [item.to_dict() for item in enriched],
        }

    async def search_vector(
        self,
        vector: Optional[Sequence[float]],
        limit: Any = None,
        threshold: Any = None,
        metric: Any = None,
    ) -> Dict[str, Any]:
        """
        Rank stored tracks against a caller-supplied vector and attach catalog metadata.

        Same parameter defaults, threshold and ordering rules as ``similar_tracks``.

        Raises:
            MissingParameter: vector absent
            InvalidArgument: malformed parameters, or a vector whose width
                differs from the stored embeddings
        """
        query = VectorQuery.from_params(vector, limit, threshold, metric, config=self.config)
        cache_key = generate_cache_key("search-vector", query.cache_params())

        logger.info(
            f"Searching up to {query.limit} tracks near a {query.dimension}-d vector "
            f"({query.metric.value}, threshold {query.threshold})"
        )

        results = await self.cache.get_or_compute(
            cache_key,
            lambda: self._run_ranking(self.engine.find_nearest, query),
            ttl_seconds=self.config.similar_ttl,
        )

        enriched = await enrich_results(
            results,
            self.track_metadata,
            max_concurrency=self.config.enrich_concurrency,
        )

        return {
            "dimension": query.dimension,
            "metric": query.metric.value,
            "threshold": query.threshold,
            "limit": query.limit,
            "count": len(enriched),
            "results": [item.to_dict() for item in enriched],
        }

    async def _run_ranking(
        self,
        rank: Callable[[Any], List[SimilarityResult]],
        query: Any,
    ) -> Tuple[SimilarityResult, ...]:
        """Run the ranking in an executor so numpy work stays off the event loop."""
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(self._executor, rank, query)
        # Tuples keep cached values immutable across callers
        return tuple(results)

    # =========================================================================
    # Catalog lookups
    # =========================================================================

    async def track_metadata(self, track_id: str) -> Optional[TrackMetadata]:
        """Cached catalog lookup for one track; None when the catalog has no such track."""
        cache_key = generate_cache_key("tracks-info", {"track_id": track_id})
        return await self.cache.get_or_compute(
            cache_key,
            lambda: self.catalog.get_track(track_id),
            ttl_seconds=self.config.track_ttl,
        )

    async def track(self, track_id: Optional[str]) -> TrackMetadata:
        """Catalog metadata for one track; raises NotFound when absent."""
        if not track_id or not track_id.strip():
            raise MissingParameter("trackId parameter required")

        metadata = await self.track_metadata(track_id)
        if metadata is None:
            raise NotFound(f"Track not found: {track_id}")
        return metadata

    async def artist_complete(self, artist: Optional[str]) -> ArtistComplete:
        """Artist with full discography, cached for ``artist_ttl`` seconds."""
        if not artist or not artist.strip():
            raise MissingParameter("artist parameter required")

        cache_key = generate_cache_key("artists-complete", {"artist": artist})
        return await self.cache.get_or_compute(
            cache_key,
            lambda: self.catalog.get_artist_complete(artist),
            ttl_seconds=self.config.artist_ttl,
        )

    async def playlist(self, playlist_id: Optional[str]) -> Playlist:
        """Playlist with its tracks; absence raises NotFound and is not cached."""
        if not playlist_id or not playlist_id.strip():
            raise MissingParameter("Playlist ID is required")

        async def fetch() -> Playlist:
            playlist = await self.catalog.get_playlist(playlist_id)
            if playlist is None:
                raise NotFound("Playlist not found")
            return playlist

        cache_key = generate_cache_key("playlists", {"playlist_id": playlist_id})
        return await self.cache.get_or_compute(cache_key, fetch, ttl_seconds=self.config.playlist_ttl)

    # =========================================================================
    # Introspection and lifecycle
    # =========================================================================

    def get_metrics(self) -> Dict[str, Any]:
        """Get embedding and cache statistics."""
        return {
            "embeddings": len(self.engine.store),
            "dimension": self.engine.store.dimension,
            "cache": self.cache.get_stats(),
            "cache_config": self.config.get_cache_info(),
        }

    def is_available(self) -> bool:
        """Check if the service has any embeddings to search."""
        return len(self.engine.store) > 0

    async def close(self) -> None:
        """Release the catalog client's connections."""
        aclose = getattr(self.catalog, "aclose", None)
        if aclose is not None:
            await aclose()
