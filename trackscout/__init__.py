"""
trackscout: similar-track discovery over precomputed audio embeddings.
"""

from .cache import TTLCache, generate_cache_key
from .config import ScoutConfig, scout_config
from .errors import (
    DiscoveryError,
    InternalFault,
    InvalidArgument,
    MissingParameter,
    NotFound,
    UpstreamFailure,
)
from .service import DiscoveryService

__version__ = "0.1.0"

__all__ = [
    'DiscoveryService',
    'TTLCache',
    'generate_cache_key',
    'ScoutConfig',
    'scout_config',
    'DiscoveryError',
    'MissingParameter',
    'InvalidArgument',
    'NotFound',
    'UpstreamFailure',
    'InternalFault',
]
