"""
Error taxonomy for driver resolution and command dispatch.

Every error is raised synchronously to whoever started the operation.
"""

from typing import Iterable, Optional


class DispatchError(Exception):
    """Base exception for driver and command operations."""
    pass


class UnknownDriverError(DispatchError):
    """Driver name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Driver '{name}' not found")
        self.name = name


class MissingConfigError(DispatchError):
    """Driver is registered but lacks required configuration keys."""

    def __init__(self, name: str, missing: Iterable[str]):
        self.name = name
        self.missing = sorted(missing)
        super().__init__(
            f"Driver '{name}' is missing required config: {', '.join(self.missing)}"
        )


class InvalidArgumentError(DispatchError):
    """A builder configuration call received a malformed argument."""
    pass


class UnsupportedTypeError(DispatchError):
    """Payload type is not in the builder's allowlist."""

    def __init__(self, file_type: Optional[str], allowed: Iterable[str]):
        self.file_type = file_type
        self.allowed = sorted(allowed)
        super().__init__(
            f"Type '{file_type}' is not accepted (allowed: {', '.join(self.allowed)})"
        )


class AlreadyExecutedError(DispatchError):
    """A command builder was used after its terminal action."""
    pass


class DriverExecutionError(DispatchError):
    """The underlying transport failed. The original exception is the __cause__."""

    def __init__(self, driver: str, message: str):
        super().__init__(f"Driver '{driver}' failed: {message}")
        self.driver = driver
