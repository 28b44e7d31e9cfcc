"""
Dispatch driver layer.

Provides pluggable backends for:
- Mail delivery (SMTP)
- File storage (local filesystem, S3-compatible object store)
- Record persistence (append-only log, in-memory)
"""

from core.drivers.base import (
    DispatchResult,
    Driver,
    DriverConfig,
    DriverKind,
    Payload,
)
from core.drivers.factory import (
    create_registry,
    driver_class_for,
    get_driver_kind,
)
from core.drivers.registry import DriverRegistry

__all__ = [
    # Abstract interface and value types
    "Driver",
    "DriverConfig",
    "DriverKind",
    "Payload",
    "DispatchResult",
    # Registry
    "DriverRegistry",
    # Factory functions
    "create_registry",
    "driver_class_for",
    "get_driver_kind",
]
