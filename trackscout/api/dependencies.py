"""
FastAPI dependency injection for the discovery service.

The service lives on ``app.state`` so every app instance (one per test,
one per server) carries its own.
"""
from fastapi import Depends, Request

from ..service import DiscoveryService


def get_discovery_service(request: Request) -> DiscoveryService:
    """Dependency for the discovery service."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise RuntimeError("DiscoveryService not initialized")
    return service


DiscoveryServiceDep = Depends(get_discovery_service)
