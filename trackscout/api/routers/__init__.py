from .health import router as health_router
from .music import router as music_router

__all__ = ["health_router", "music_router"]
