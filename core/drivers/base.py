"""
Abstract base classes and value types for dispatch drivers.

This module defines the contract that every driver variant must follow,
whether it sends mail, stores files or persists records. A driver receives
a frozen Payload and returns a DispatchResult.

Design principles:
- Closed set of kinds: every variant is listed in DriverKind
- Fail fast: required configuration is declared up front and checked
  when the driver is resolved, never at execute time
- Explicit capabilities: optional behaviour is declared with a flag
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Iterable, Mapping, Optional, Union


class DriverKind(str, Enum):
    """Supported driver variants."""
    MEMORY = "memory"
    FILESYSTEM = "filesystem"
    LOG = "log"
    SMTP = "smtp"
    OBJECT_STORE = "object_store"


def _freeze(data: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class DriverConfig:
    """
    Named, read-only driver options.

    Options come from application configuration and never change after load.
    """
    name: str
    kind: DriverKind
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", DriverKind(self.kind))
        object.__setattr__(self, "options", _freeze(self.options))

    def __getitem__(self, key: str) -> Any:
        return self.options[key]

    def __contains__(self, key: object) -> bool:
        return key in self.options

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def missing(self, required: Iterable[str]) -> list[str]:
        """Return required keys that are absent or empty."""
        return [
            key for key in required
            if key not in self.options or self.options[key] in (None, "")
        ]


@dataclass(frozen=True)
class Payload:
    """Frozen parameters handed to Driver.execute()."""
    destination: Optional[str] = None
    content: Union[str, bytes, None] = None
    subject: Optional[str] = None
    template_ref: Optional[str] = None
    template_data: Mapping[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    file_type: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "template_data", _freeze(self.template_data))

    @property
    def content_bytes(self) -> bytes:
        """Content encoded as UTF-8 when it was given as text."""
        if self.content is None:
            return b""
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        content = self.content
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        return {
            "destination": self.destination,
            "content": content,
            "subject": self.subject,
            "template_ref": self.template_ref,
            "template_data": dict(self.template_data),
            "name": self.name,
            "file_type": self.file_type,
        }


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a successful execute() call."""
    location: str
    driver: str
    status: str = "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "location": self.location,
            "driver": self.driver,
        }


class Driver(ABC):
    """
    Abstract interface for dispatch drivers.

    Subclasses set ``kind`` and ``REQUIRED_KEYS`` and implement execute().
    A driver that wants a post-dispatch callback sets ``HAS_AFTER_HOOK``
    and overrides after(); the dispatcher never probes for it otherwise.

    Usage:
        driver = FilesystemDriver(DriverConfig("disk", "filesystem", {"location": "/srv"}))
        result = await driver.execute(Payload(name="avatar.png", content=b"..."))
    """

    kind: ClassVar[DriverKind]
    REQUIRED_KEYS: ClassVar[tuple[str, ...]] = ()
    HAS_AFTER_HOOK: ClassVar[bool] = False

    def __init__(self, config: DriverConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    async def execute(self, payload: Payload) -> DispatchResult:
        """
        Perform the driver's single action for one payload.

        Args:
            payload: Frozen command parameters

        Returns:
            DispatchResult with the location or reference of the outcome

        Raises:
            InvalidArgumentError: If the payload cannot be handled
            Exception: Transport failures; the dispatcher wraps them
        """
        pass

    async def after(self, payload: Payload, result: DispatchResult) -> None:
        """Post-dispatch hook, only called when HAS_AFTER_HOOK is set."""
        return None

    async def close(self) -> None:
        """Release connections or handles. Default is a no-op."""
        return None
