"""
FastAPI dependencies for dependency injection.

Provides the driver manager singleton to route handlers.
"""

from typing import Optional

from fastapi import HTTPException

from manager.manager import DriverManager


# Global singleton (set during app lifespan)
_manager: Optional[DriverManager] = None


def set_manager(manager: Optional[DriverManager]) -> None:
    """Set the global manager instance."""
    global _manager
    _manager = manager


async def get_driver_manager() -> DriverManager:
    """
    Dependency that provides the driver manager.

    Usage:
        @router.post("/dispatch")
        async def dispatch(
            manager: DriverManager = Depends(get_driver_manager),
        ):
            ...
    """
    if _manager is None:
        raise HTTPException(
            status_code=503,
            detail="Driver manager not initialized",
        )
    return _manager
