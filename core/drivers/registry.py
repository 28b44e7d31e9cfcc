"""
Driver registry.

Holds named driver configurations and lazily builds one driver instance per
name. Instances are cached for the process lifetime; concurrent first
resolution of a name runs its factory exactly once.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

from core.drivers.base import Driver, DriverConfig, DriverKind
from core.errors import InvalidArgumentError, MissingConfigError, UnknownDriverError
from core.logging import get_logger


logger = get_logger(__name__)


DriverFactory = Callable[[DriverConfig], Driver]


@dataclass(frozen=True)
class RegistryEntry:
    config: DriverConfig
    factory: DriverFactory
    required: tuple[str, ...] = ()


class DriverRegistry:
    """
    Name -> (config, factory) table with a resolve-once instance cache.

    Usage:
        registry = DriverRegistry()
        registry.register_kind("mail", DriverKind.SMTP, {"host": "localhost", "port": 25})
        driver = registry.resolve("mail")
        assert registry.resolve("mail") is driver
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._instances: dict[str, Driver] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def register(
        self,
        name: str,
        config: DriverConfig,
        factory: DriverFactory,
        required: Iterable[str] = (),
    ) -> None:
        """
        Register a driver under *name*.

        Args:
            name: Key used by driver(name) and in configuration
            config: Options passed to the factory
            factory: Callable building the driver from its config
            required: Option keys that must be present at resolution

        Raises:
            InvalidArgumentError: If name is empty or already resolved
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("Driver name must be a non-empty string")

        with self._guard:
            if name in self._instances:
                raise InvalidArgumentError(
                    f"Driver '{name}' is already in use and cannot be replaced"
                )
            # Lock first: resolve() reads _entries and then _locks without _guard
            self._locks.setdefault(name, threading.Lock())
            self._entries[name] = RegistryEntry(config, factory, tuple(required))

        logger.debug("Driver registered", driver=name, kind=config.kind.value)

    def register_kind(
        self,
        name: str,
        kind: DriverKind | str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Register one of the built-in driver variants."""
        from core.drivers.factory import driver_class_for

        driver_cls = driver_class_for(kind)
        config = DriverConfig(name=name, kind=driver_cls.kind, options=options or {})
        self.register(name, config, driver_cls, required=driver_cls.REQUIRED_KEYS)

    def resolve(self, name: str) -> Driver:
        """
        Return the driver instance for *name*, building it on first use.

        Raises:
            UnknownDriverError: If name is not registered
            MissingConfigError: If required options are absent
        """
        driver = self._instances.get(name)
        if driver is not None:
            return driver

        entry = self._entries.get(name)
        if entry is None:
            raise UnknownDriverError(name)

        with self._locks[name]:
            driver = self._instances.get(name)
            if driver is not None:
                return driver

            missing = entry.config.missing(entry.required)
            if missing:
                raise MissingConfigError(name, missing)

            driver = entry.factory(entry.config)
            self._instances[name] = driver

        logger.info("Driver resolved", driver=name, kind=entry.config.kind.value)
        return driver

    def config(self, name: str) -> DriverConfig:
        entry = self._entries.get(name)
        if entry is None:
            raise UnknownDriverError(name)
        return entry.config

    def names(self) -> list[str]:
        return list(self._entries)

    def is_resolved(self, name: str) -> bool:
        return name in self._instances

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    async def close(self) -> None:
        """Close every resolved driver and empty the instance cache."""
        with self._guard:
            instances = list(self._instances.items())
            self._instances.clear()

        for name, driver in instances:
            await driver.close()
            logger.debug("Driver closed", driver=name)
