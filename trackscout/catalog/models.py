"""
Catalog data models for tracks, artists and playlists.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TrackMetadata(BaseModel):
    """Catalog metadata for one track."""

    model_config = ConfigDict(populate_by_name=True)

    # Core identifiers
    id: str = Field(..., description="Catalog track identifier")
    video_id: Optional[str] = Field(None, alias="videoId", description="Playback video identifier")

    # Descriptive information
    title: str = Field(..., description="Human-readable track title")
    artist: str = Field(..., description="Primary artist name")
    album: Optional[str] = Field(None, description="Album title")
    duration: Optional[float] = Field(None, ge=0, description="Duration in seconds")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL")


class AlbumSummary(BaseModel):
    """Album entry inside an artist discography."""

    model_config = ConfigDict(populate_by_name=True)

    browse_id: Optional[str] = Field(None, alias="browseId")
    title: str
    year: Optional[str] = None
    thumbnail: Optional[str] = None
    tracks: List[TrackMetadata] = Field(default_factory=list)


class ArtistComplete(BaseModel):
    """Artist with full discography."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    browse_id: Optional[str] = Field(None, alias="browseId")
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    albums: List[AlbumSummary] = Field(default_factory=list)
    singles: List[AlbumSummary] = Field(default_factory=list)
    top_tracks: List[TrackMetadata] = Field(default_factory=list, alias="topTracks")

    @property
    def track_count(self) -> int:
        return sum(len(album.tracks) for album in self.albums + self.singles)


class Playlist(BaseModel):
    """Playlist with its tracks."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    tracks: List[TrackMetadata] = Field(default_factory=list)
    track_count: Optional[int] = Field(None, alias="trackCount")

    @field_validator('track_count', mode='before')
    @classmethod
    def parse_track_count(cls, v: Any):
        # Upstream sends counts like "1,024 songs"
        if isinstance(v, str):
            digits = ''.join(ch for ch in v if ch.isdigit())
            return int(digits) if digits else None
        return v

    def model_post_init(self, __context: Any) -> None:
        if self.track_count is None:
            self.track_count = len(self.tracks)
