"""
Health check endpoints.

Provides endpoints for monitoring and load balancer health checks.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_driver_manager
from core.logging import get_logger
from manager.manager import DriverManager


logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Basic health check.

    Returns 200 if the service is running.
    Used by load balancers and orchestration systems.
    """
    return {
        "status": "healthy",
        "service": "driver-dispatch",
    }


@router.get("/ready")
async def readiness_check(
    manager: DriverManager = Depends(get_driver_manager),
) -> dict:
    """
    Readiness check.

    Returns 200 once the driver manager is available, with the
    registered drivers and the default selection.
    """
    return {
        "status": "ready",
        "checks": {
            "drivers": manager.registry.names(),
            "default": manager.default,
            "active": manager.active,
        },
    }
