"""
Music discovery API routes.

Query parameters arrive as raw strings; parsing happens in the service so
malformed values surface as INVALID_ARGUMENT through the error envelope.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Query

from ...service import DiscoveryService
from ..dependencies import DiscoveryServiceDep
from ..responses import success_response
from ..schemas import VectorSearchRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/music", tags=["music"])


@router.get("/tracks/{track_id}/similar")
async def get_similar_tracks(
    track_id: str,
    limit: Optional[str] = Query(None, description="Maximum number of results"),
    threshold: Optional[str] = Query(None, description="Minimum similarity (cosine) or maximum distance"),
    metric: Optional[str] = Query(None, description="cosine, euclidean or manhattan"),
    service: DiscoveryService = DiscoveryServiceDep,
):
    """
    Get tracks similar to ``track_id``, with catalog metadata attached.

    - **cosine**: higher is more similar; results have score >= threshold
    - **euclidean** / **manhattan**: distances; results have score <= threshold
    """
    data = await service.similar_tracks(track_id, limit=limit, threshold=threshold, metric=metric)
    return success_response(data)


@router.post("/search/vector")
async def search_by_vector(
    body: VectorSearchRequest,
    service: DiscoveryService = DiscoveryServiceDep,
):
    """
    Rank stored tracks against a supplied embedding vector.

    Same metric, threshold and limit semantics as the similar-tracks route.
    """
    data = await service.search_vector(
        body.vector,
        limit=body.limit,
        threshold=body.threshold,
        metric=body.metric,
    )
    return success_response(data)


@router.get("/tracks/{track_id}")
async def get_track(track_id: str, service: DiscoveryService = DiscoveryServiceDep):
    """Get catalog metadata for one track."""
    track = await service.track(track_id)
    return success_response(track.model_dump(by_alias=True))


@router.get("/artists/complete")
async def get_artist_complete(
    artist: Optional[str] = Query(None, description="Artist name"),
    service: DiscoveryService = DiscoveryServiceDep,
):
    """Get an artist with albums, singles and top tracks."""
    result = await service.artist_complete(artist)
    return success_response(
        result.model_dump(by_alias=True),
        message=f"Complete discography for {result.name}",
    )


@router.get("/playlists/{playlist_id}")
async def get_playlist(playlist_id: str, service: DiscoveryService = DiscoveryServiceDep):
    """Get a playlist with its tracks."""
    playlist = await service.playlist(playlist_id)
    return success_response(playlist.model_dump(by_alias=True))


@router.get("/metrics")
async def get_metrics(service: DiscoveryService = DiscoveryServiceDep):
    """Get embedding and cache statistics."""
    return success_response(service.get_metrics())
