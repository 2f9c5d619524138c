"""
Music catalog clients.

The catalog is an external, possibly slow collaborator: every call is async
and may fail. ``HttpCatalogClient`` talks to a catalog service over HTTP;
``InMemoryCatalog`` serves fixed data for local runs and tests.
"""
import logging
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..errors import NotFound, UpstreamFailure
from .models import ArtistComplete, Playlist, TrackMetadata

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Encode an identifier as exactly one URL path segment."""
    encoded = quote(value, safe="")
    # Bare dot segments would be collapsed by URL normalization
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


class CatalogClient(Protocol):
    """Lookups the discovery service needs from the music catalog."""

    async def get_track(self, track_id: str) -> Optional[TrackMetadata]:
        """Return metadata for one track, or None when it does not exist."""
        ...

    async def get_artist_complete(self, name: str) -> ArtistComplete:
        """Return an artist with full discography; raises NotFound when unknown."""
        ...

    async def get_playlist(self, playlist_id: str) -> Optional[Playlist]:
        """Return a playlist with its tracks, or None when it does not exist."""
        ...


class InMemoryCatalog:
    """Dictionary-backed catalog."""

    def __init__(
        self,
        tracks: Optional[Dict[str, TrackMetadata]] = None,
        artists: Optional[Dict[str, ArtistComplete]] = None,
        playlists: Optional[Dict[str, Playlist]] = None,
    ):
        self.tracks = dict(tracks or {})
        # Artist lookups are case-insensitive, like the upstream search
        self.artists = {name.lower(): artist for name, artist in (artists or {}).items()}
        self.playlists = dict(playlists or {})
        logger.info(
            f"InMemoryCatalog initialized with {len(self.tracks)} tracks, "
            f"{len(self.artists)} artists, {len(self.playlists)} playlists"
        )

    async def get_track(self, track_id: str) -> Optional[TrackMetadata]:
        return self.tracks.get(track_id)

    async def get_artist_complete(self, name: str) -> ArtistComplete:
        artist = self.artists.get(name.strip().lower())
        if artist is None:
            raise NotFound("Artist not found")
        return artist

    async def get_playlist(self, playlist_id: str) -> Optional[Playlist]:
        return self.playlists.get(playlist_id)


class HttpCatalogClient:
    """
    Async HTTP client for a catalog service.

    Expected endpoints (JSON, optionally wrapped in a ``{success, data}`` envelope):
        GET /tracks/{track_id}
        GET /artists/complete?artist=<name>
        GET /playlists/{playlist_id}

    Identifiers are percent-encoded as single path segments. A 404 means
    "absent"; timeouts, transport errors, other error statuses and malformed
    payloads raise UpstreamFailure with the cause chained.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "HttpCatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """GET ``path``; returns the unwrapped payload, or None on 404."""
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Catalog request timed out: {path}: {e}")
            raise UpstreamFailure(f"Catalog request timed out: {path}") from e
        except httpx.HTTPError as e:
            logger.error(f"Catalog transport error: {path}: {e}")
            raise UpstreamFailure(f"Catalog transport error: {path}") from e

        if response.status_code == 404:
            return None

        try:
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            logger.error(f"Catalog service error: {path}: {e}")
            raise UpstreamFailure(f"Catalog service error: {path}") from e

        if isinstance(payload, dict) and "success" in payload:
            if not payload["success"]:
                return None
            return payload.get("data")
        return payload

    async def get_track(self, track_id: str) -> Optional[TrackMetadata]:
        payload = await self._get_json(f"/tracks/{_segment(track_id)}")
        if payload is None:
            return None
        return self._parse(TrackMetadata, payload, f"track {track_id}")

    async def get_artist_complete(self, name: str) -> ArtistComplete:
        payload = await self._get_json("/artists/complete", params={"artist": name})
        if payload is None:
            raise NotFound("Artist not found")
        return self._parse(ArtistComplete, payload, f"artist {name}")

    async def get_playlist(self, playlist_id: str) -> Optional[Playlist]:
        payload = await self._get_json(f"/playlists/{_segment(playlist_id)}")
        if payload is None:
            return None
        return self._parse(Playlist, payload, f"playlist {playlist_id}")

    @staticmethod
    def _parse(model, payload: Any, what: str):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Malformed catalog payload for {what}: {e}")
            raise UpstreamFailure(f"Malformed catalog payload for {what}") from e
