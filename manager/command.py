"""
Fluent command builder.

A builder accumulates chained configuration calls and then dispatches one
Payload to the driver it was bound to at creation. Builders are single-use
and single-owner: they carry no locking and refuse any call after their
terminal action.

    result = await (
        manager.driver("uploads")
        .accept("png", "jpg")
        .prefix("user_")
        .name("avatar.png")
        .content(data)
        .dispatch()
    )
"""

import asyncio
import uuid
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from core.drivers.base import DispatchResult, Driver, Payload
from core.errors import (
    AlreadyExecutedError,
    DispatchError,
    DriverExecutionError,
    InvalidArgumentError,
    UnsupportedTypeError,
)
from core.logging import dispatch_context, get_logger


logger = get_logger(__name__)


Call = Callable[[], Awaitable[DispatchResult]]
RetryWrapper = Callable[[Call], Awaitable[DispatchResult]]


class CommandState(str, Enum):
    """Lifecycle of a command builder."""
    CREATED = "created"
    CONFIGURING = "configuring"
    EXECUTED = "executed"
    FAILED = "failed"


TERMINAL_STATES = (CommandState.EXECUTED, CommandState.FAILED)


def apply_prefix(prefix: Optional[str], base_name: str) -> str:
    """Prepend *prefix* to *base_name*, keeping any directory part intact."""
    if not prefix:
        return base_name
    path = PurePosixPath(base_name)
    if path.parent == PurePosixPath("."):
        return f"{prefix}{base_name}"
    return str(path.parent / f"{prefix}{path.name}")


def file_type_of(name: Optional[str]) -> Optional[str]:
    """Extension of *name* without the dot, lower-cased."""
    if not name:
        return None
    suffix = PurePosixPath(name).suffix
    if not suffix:
        return None
    return suffix[1:].lower()


def _normalize_extension(value: Any) -> str:
    if not isinstance(value, str) or not value.strip().lstrip("."):
        raise InvalidArgumentError(f"File type must be a non-empty string, got {value!r}")
    return value.strip().lstrip(".").lower()


def _require_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} must be a non-empty string, got {value!r}")
    return value


class CommandBuilder:
    """
    Single-use accumulator of dispatch parameters.

    The driver is bound when the builder is created; switching the manager's
    active driver afterwards does not affect it.
    """

    def __init__(
        self,
        driver_name: str,
        driver: Driver,
        timeout: Optional[float] = None,
    ):
        self.driver_name = driver_name
        self.driver = driver
        self.timeout = timeout
        self.state = CommandState.CREATED

        self._destination: Optional[str] = None
        self._subject: Optional[str] = None
        self._content: Union[str, bytes, None] = None
        self._template_ref: Optional[str] = None
        self._template_data: dict[str, Any] = {}
        self._accepted: Optional[frozenset[str]] = None
        self._prefix: Optional[str] = None
        self._name: Optional[str] = None
        self._file_type: Optional[str] = None
        self._retry: Optional[RetryWrapper] = None

    def __repr__(self) -> str:
        return f"<CommandBuilder driver={self.driver_name!r} state={self.state.value}>"

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def _configure(self) -> "CommandBuilder":
        if self.is_terminal:
            raise AlreadyExecutedError(
                f"Command for driver '{self.driver_name}' is {self.state.value}; create a new one"
            )
        self.state = CommandState.CONFIGURING
        return self

    def _fail(self, exc: DispatchError) -> DispatchError:
        # A bad argument spends the builder as well
        self.state = CommandState.FAILED
        return exc

    # =========================================
    # Configuration calls
    # =========================================

    def to(self, destination: str) -> "CommandBuilder":
        """Set the recipient address or destination."""
        self._configure()
        try:
            self._destination = _require_text("Destination", destination)
        except InvalidArgumentError as e:
            raise self._fail(e)
        return self

    def subject(self, text: str) -> "CommandBuilder":
        self._configure()
        if not isinstance(text, str):
            raise self._fail(InvalidArgumentError(f"Subject must be a string, got {text!r}"))
        self._subject = text
        return self

    def content(self, body: Union[str, bytes]) -> "CommandBuilder":
        """Set the message body or file content."""
        self._configure()
        if not isinstance(body, (str, bytes, bytearray)):
            raise self._fail(
                InvalidArgumentError(f"Content must be str or bytes, got {type(body).__name__}")
            )
        self._content = bytes(body) if isinstance(body, bytearray) else body
        return self

    def template(
        self,
        ref: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> "CommandBuilder":
        """Reference a template and the data it should be rendered with."""
        self._configure()
        try:
            self._template_ref = _require_text("Template reference", ref)
        except InvalidArgumentError as e:
            raise self._fail(e)
        if data is not None and not isinstance(data, Mapping):
            raise self._fail(InvalidArgumentError("Template data must be a mapping"))
        self._template_data = dict(data or {})
        return self

    def accept(self, *extensions: str) -> "CommandBuilder":
        """Restrict the payload to the given file-type extensions."""
        self._configure()
        if not extensions:
            raise self._fail(InvalidArgumentError("accept() needs at least one file type"))
        try:
            self._accepted = frozenset(_normalize_extension(ext) for ext in extensions)
        except InvalidArgumentError as e:
            raise self._fail(e)
        return self

    def prefix(self, value: str) -> "CommandBuilder":
        """Prepend *value* to the payload name at dispatch time."""
        self._configure()
        try:
            self._prefix = _require_text("Prefix", value)
        except InvalidArgumentError as e:
            raise self._fail(e)
        return self

    def name(self, base_name: str) -> "CommandBuilder":
        """Set the identity (file or object name) of the payload."""
        self._configure()
        try:
            self._name = _require_text("Name", base_name)
        except InvalidArgumentError as e:
            raise self._fail(e)
        return self

    def file_type(self, extension: str) -> "CommandBuilder":
        """Override the type otherwise derived from the name's extension."""
        self._configure()
        try:
            self._file_type = _normalize_extension(extension)
        except InvalidArgumentError as e:
            raise self._fail(e)
        return self

    def retry(self, wrapper: RetryWrapper) -> "CommandBuilder":
        """Wrap the driver call, e.g. with manager.retry.retrying()."""
        self._configure()
        if not callable(wrapper):
            raise self._fail(InvalidArgumentError("Retry wrapper must be callable"))
        self._retry = wrapper
        return self

    # =========================================
    # Terminal action
    # =========================================

    def build_payload(self) -> Payload:
        """Freeze the accumulated state. Pure: does not change the builder."""
        file_type = self._file_type or file_type_of(self._name)

        name = self._name
        if name is None and (self._prefix or file_type):
            name = uuid.uuid4().hex + (f".{file_type}" if file_type else "")
        if name is not None:
            name = apply_prefix(self._prefix, name)

        return Payload(
            destination=self._destination,
            content=self._content,
            subject=self._subject,
            template_ref=self._template_ref,
            template_data=self._template_data,
            name=name,
            file_type=file_type,
        )

    def _check_type(self, payload: Payload) -> None:
        if self._accepted is None:
            return
        if payload.file_type not in self._accepted:
            raise UnsupportedTypeError(payload.file_type, self._accepted)

    async def _call_driver(self, payload: Payload) -> DispatchResult:
        try:
            if self.timeout:
                return await asyncio.wait_for(self.driver.execute(payload), self.timeout)
            return await self.driver.execute(payload)
        except DispatchError:
            raise
        except asyncio.TimeoutError as e:
            message = f"timed out after {self.timeout}s" if self.timeout else "timed out"
            raise DriverExecutionError(self.driver_name, message) from e
        except Exception as e:
            raise DriverExecutionError(self.driver_name, str(e) or type(e).__name__) from e

    async def _call_after_hook(self, payload: Payload, result: DispatchResult) -> None:
        try:
            await self.driver.after(payload, result)
        except DispatchError:
            raise
        except Exception as e:
            raise DriverExecutionError(
                self.driver_name, f"after hook failed: {e}"
            ) from e

    async def dispatch(self) -> DispatchResult:
        """
        Execute the command against the bound driver.

        Returns:
            DispatchResult from the driver

        Raises:
            AlreadyExecutedError: If called more than once
            UnsupportedTypeError: If the payload type is not accepted
            DriverExecutionError: If the driver fails or times out
        """
        if self.is_terminal:
            raise AlreadyExecutedError(
                f"Command for driver '{self.driver_name}' was already {self.state.value}"
            )
        # Claim the builder before the first await
        self.state = CommandState.FAILED

        with dispatch_context(self.driver_name):
            try:
                payload = self.build_payload()
                self._check_type(payload)

                logger.info(
                    "Dispatch started",
                    destination=payload.destination,
                    name=payload.name,
                )

                async def call() -> DispatchResult:
                    return await self._call_driver(payload)

                if self._retry is not None:
                    result = await self._retry(call)
                else:
                    result = await call()

                if self.driver.HAS_AFTER_HOOK:
                    await self._call_after_hook(payload, result)
            except DispatchError as e:
                logger.warning("Dispatch failed", error=str(e), error_type=type(e).__name__)
                raise

        self.state = CommandState.EXECUTED
        logger.info("Dispatch succeeded", driver=self.driver_name, location=result.location)
        return result
