"""
Health monitoring API routes.
"""
from fastapi import APIRouter

from ...service import DiscoveryService
from ..dependencies import DiscoveryServiceDep
from ..responses import success_response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(service: DiscoveryService = DiscoveryServiceDep):
    """Basic health check endpoint."""
    return success_response({
        "status": "healthy" if service.is_available() else "degraded",
        "embeddings": len(service.engine.store),
    })
