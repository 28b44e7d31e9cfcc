"""
Driver factory for building the registry from configuration.

This module maps each DriverKind to its implementation and turns the
``drivers`` settings mapping into a populated DriverRegistry.
"""

from typing import TYPE_CHECKING

from core.drivers.base import Driver, DriverKind
from core.drivers.registry import DriverRegistry
from core.errors import InvalidArgumentError
from core.logging import get_logger


if TYPE_CHECKING:
    from core.config import Settings


logger = get_logger(__name__)


def get_driver_kind(kind: DriverKind | str) -> DriverKind:
    """
    Parse a configured kind string.

    Raises:
        InvalidArgumentError: If the kind is not supported
    """
    try:
        return DriverKind(str(kind.value if isinstance(kind, DriverKind) else kind).lower())
    except ValueError:
        raise InvalidArgumentError(
            f"Unsupported driver kind: {kind}. "
            f"Supported kinds: {[k.value for k in DriverKind]}"
        )


def driver_class_for(kind: DriverKind | str) -> type[Driver]:
    """Return the driver class implementing *kind*."""
    kind = get_driver_kind(kind)

    if kind == DriverKind.MEMORY:
        from core.drivers.memory import MemoryDriver
        return MemoryDriver

    elif kind == DriverKind.FILESYSTEM:
        from core.drivers.filesystem import FilesystemDriver
        return FilesystemDriver

    elif kind == DriverKind.LOG:
        from core.drivers.log import LogDriver
        return LogDriver

    elif kind == DriverKind.SMTP:
        from core.drivers.smtp import SMTPDriver
        return SMTPDriver

    elif kind == DriverKind.OBJECT_STORE:
        from core.drivers.object_store import ObjectStoreDriver
        return ObjectStoreDriver

    else:
        raise InvalidArgumentError(f"Unsupported driver kind: {kind}")


def create_registry(settings: "Settings") -> DriverRegistry:
    """
    Create a registry holding every driver listed in settings.

    Drivers are registered, not built: configuration errors surface when a
    driver is first resolved.

    Args:
        settings: Application settings

    Returns:
        Populated registry
    """
    registry = DriverRegistry()

    for name, raw in settings.drivers.items():
        options = dict(raw)
        kind = options.pop("kind")
        registry.register_kind(name, kind, options)

    logger.info(
        "Driver registry created",
        drivers=registry.names(),
        default=settings.default_driver,
    )
    return registry
