"""
Pydantic schemas for API request/response validation.
"""

from api.schemas.dispatch import (
    ActiveDriverRequest,
    DispatchRequest,
    DispatchResponse,
    DriverInfo,
    DriverListResponse,
)

__all__ = [
    "ActiveDriverRequest",
    "DispatchRequest",
    "DispatchResponse",
    "DriverInfo",
    "DriverListResponse",
]
