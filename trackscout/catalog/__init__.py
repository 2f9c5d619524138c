"""
Music catalog collaborator: models and clients.
"""

from .client import CatalogClient, HttpCatalogClient, InMemoryCatalog
from .models import AlbumSummary, ArtistComplete, Playlist, TrackMetadata

__all__ = [
    'CatalogClient',
    'HttpCatalogClient',
    'InMemoryCatalog',
    'AlbumSummary',
    'ArtistComplete',
    'Playlist',
    'TrackMetadata',
]
