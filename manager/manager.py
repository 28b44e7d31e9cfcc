"""
Driver manager - entry point for dispatching commands.

Owns the active-driver selection and hands out command builders bound to
a resolved driver. The active driver starts at the configured default and
changes only through driver(name).
"""

import threading
from functools import lru_cache
from typing import Optional

from core.config import get_settings
from core.drivers import DriverRegistry, create_registry
from core.errors import UnknownDriverError
from core.logging import get_logger
from manager.command import CommandBuilder


logger = get_logger(__name__)


class DriverManager:
    """
    Facade over the driver registry.

    - driver(name): switch the active driver and start a command on it
    - command() / manager(): start a command on the active driver

    Each builder binds its driver when created, so later switches do not
    redirect commands already being configured.

    Usage:
        manager = DriverManager(registry, default="smtp")

        await manager.command().to("ops@example.com").subject("Hi").dispatch()
        await manager.driver("s3").name("report.pdf").content(data).dispatch()
    """

    def __init__(
        self,
        registry: DriverRegistry,
        default: str,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the manager.

        Args:
            registry: Registry holding every available driver
            default: Driver used until driver(name) is called
            timeout: Seconds allowed per driver execute() call
        """
        if default not in registry:
            raise UnknownDriverError(default)
        self._registry = registry
        self._default = default
        self._active = default
        self._lock = threading.Lock()
        self.timeout = timeout

    @property
    def registry(self) -> DriverRegistry:
        return self._registry

    @property
    def default(self) -> str:
        return self._default

    @property
    def active(self) -> str:
        with self._lock:
            return self._active

    def _builder(self, name: str) -> CommandBuilder:
        driver = self._registry.resolve(name)
        return CommandBuilder(name, driver, timeout=self.timeout)

    def driver(self, name: str) -> CommandBuilder:
        """
        Make *name* the active driver and start a command on it.

        The driver is resolved before the switch, so an unknown or
        misconfigured name leaves the active driver unchanged.
        """
        builder = self._builder(name)
        with self._lock:
            previous, self._active = self._active, name
        if previous != name:
            logger.info("Active driver switched", previous=previous, active=name)
        return builder

    def command(self) -> CommandBuilder:
        """Start a command on the currently active driver."""
        return self._builder(self.active)

    __call__ = command

    def reset(self) -> None:
        """Restore the default driver as active."""
        with self._lock:
            self._active = self._default

    async def close(self) -> None:
        await self._registry.close()


@lru_cache
def get_manager() -> DriverManager:
    """
    Process-wide manager built from settings.

    Cached like get_settings(); call get_manager.cache_clear() to rebuild.
    """
    settings = get_settings()
    registry = create_registry(settings)
    return DriverManager(
        registry,
        default=settings.default_driver,
        timeout=settings.timeout,
    )
