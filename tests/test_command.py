"""
Tests for CommandBuilder.

Covers chaining, single-use semantics, allowlist checks, name prefixing
and error wrapping around the driver call.
"""

import asyncio

import pytest
import structlog

from core.drivers import DispatchResult, DriverConfig, DriverKind, Payload
from core.drivers.log import LogDriver
from core.errors import (
    AlreadyExecutedError,
    DriverExecutionError,
    InvalidArgumentError,
    UnsupportedTypeError,
)
from manager.command import CommandBuilder, CommandState, apply_prefix, file_type_of
from manager.retry import retrying
from tests.conftest import SpyDriver


def make_builder(name="spy", timeout=None, **kwargs):
    driver = SpyDriver(DriverConfig(name=name, kind=DriverKind.MEMORY), **kwargs)
    return CommandBuilder(name, driver, timeout=timeout), driver


def test_configuration_calls_chain():
    builder, _ = make_builder()

    chained = (
        builder.to("user@example.com")
        .subject("Welcome")
        .content("Hello")
        .template("mail/welcome", {"user": "ann"})
        .prefix("user_")
        .name("avatar.png")
        .accept("png")
    )

    assert chained is builder
    assert builder.state == CommandState.CONFIGURING


@pytest.mark.asyncio
async def test_dispatch_builds_payload():
    builder, driver = make_builder()

    result = await (
        builder.to("user@example.com")
        .subject("Welcome")
        .content("Hello")
        .template("mail/welcome", {"user": "ann"})
        .dispatch()
    )

    assert result.status == "success"
    assert result.driver == "spy"
    assert builder.state == CommandState.EXECUTED

    payload = driver.calls[0]
    assert payload.destination == "user@example.com"
    assert payload.subject == "Welcome"
    assert payload.content == "Hello"
    assert payload.template_ref == "mail/welcome"
    assert payload.template_data["user"] == "ann"


@pytest.mark.asyncio
async def test_dispatch_twice_fails_and_executes_once():
    builder, driver = make_builder()
    builder.to("user@example.com")

    await builder.dispatch()
    with pytest.raises(AlreadyExecutedError):
        await builder.dispatch()

    assert len(driver.calls) == 1


@pytest.mark.asyncio
async def test_configure_after_dispatch_fails():
    builder, _ = make_builder()
    await builder.dispatch()

    with pytest.raises(AlreadyExecutedError):
        builder.to("late@example.com")


@pytest.mark.asyncio
async def test_rejected_type_never_reaches_driver():
    builder, driver = make_builder()

    with pytest.raises(UnsupportedTypeError) as exc_info:
        await builder.accept("png", "jpg").name("setup.exe").content(b"MZ").dispatch()

    assert exc_info.value.file_type == "exe"
    assert driver.calls == []
    assert builder.state == CommandState.FAILED

    with pytest.raises(AlreadyExecutedError):
        await builder.dispatch()


@pytest.mark.asyncio
async def test_explicit_file_type_checked_against_allowlist():
    builder, driver = make_builder()

    with pytest.raises(UnsupportedTypeError):
        await builder.accept("png").name("image.png").file_type("exe").dispatch()

    assert driver.calls == []


@pytest.mark.asyncio
async def test_missing_type_is_rejected_when_allowlist_set():
    builder, driver = make_builder()

    with pytest.raises(UnsupportedTypeError):
        await builder.accept("png").content(b"...").dispatch()

    assert driver.calls == []


@pytest.mark.asyncio
async def test_allowlist_normalizes_extensions():
    builder, driver = make_builder()

    await builder.accept(".PNG", "Jpg").name("photo.JPG").dispatch()

    assert driver.calls[0].file_type == "jpg"


@pytest.mark.asyncio
async def test_prefix_is_deterministic():
    names = []
    for _ in range(3):
        builder, driver = make_builder()
        await builder.prefix("user_").name("avatar.png").dispatch()
        names.append(driver.calls[0].name)

    assert names == ["user_avatar.png"] * 3
    assert apply_prefix("user_", "avatar.png") == "user_avatar.png"


def test_apply_prefix_keeps_directory():
    assert apply_prefix("user_", "avatars/me.png") == "avatars/user_me.png"
    assert apply_prefix(None, "avatar.png") == "avatar.png"


def test_file_type_of():
    assert file_type_of("archive.tar.GZ") == "gz"
    assert file_type_of("README") is None
    assert file_type_of(None) is None


@pytest.mark.asyncio
async def test_prefix_without_name_generates_identifier():
    builder, driver = make_builder()

    await builder.prefix("user_").file_type("png").content(b"...").dispatch()

    name = driver.calls[0].name
    assert name.startswith("user_")
    assert name.endswith(".png")


@pytest.mark.parametrize(
    "configure",
    [
        lambda b: b.to(""),
        lambda b: b.to(None),
        lambda b: b.subject(42),
        lambda b: b.content(123),
        lambda b: b.template(""),
        lambda b: b.template("mail/welcome", ["not", "a", "mapping"]),
        lambda b: b.accept(),
        lambda b: b.accept("png", ""),
        lambda b: b.prefix(""),
        lambda b: b.name("   "),
        lambda b: b.file_type("."),
        lambda b: b.retry("not callable"),
    ],
)
def test_invalid_arguments_fail_fast(configure):
    builder, driver = make_builder()

    with pytest.raises(InvalidArgumentError):
        configure(builder)

    assert builder.state == CommandState.FAILED
    assert driver.calls == []


@pytest.mark.asyncio
async def test_builder_is_spent_after_invalid_argument():
    builder, driver = make_builder()

    with pytest.raises(InvalidArgumentError):
        builder.accept("")

    with pytest.raises(AlreadyExecutedError):
        await builder.dispatch()

    assert driver.calls == []


@pytest.mark.asyncio
async def test_driver_failure_is_wrapped():
    cause = ConnectionError("connection refused")
    builder, _ = make_builder(fail_with=cause)

    with pytest.raises(DriverExecutionError) as exc_info:
        await builder.to("user@example.com").dispatch()

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.driver == "spy"
    assert builder.state == CommandState.FAILED


@pytest.mark.asyncio
async def test_invalid_payload_from_driver_is_not_wrapped():
    builder, _ = make_builder(fail_with=InvalidArgumentError("needs a file name"))

    with pytest.raises(InvalidArgumentError):
        await builder.dispatch()


@pytest.mark.asyncio
async def test_slow_driver_times_out():
    builder, driver = make_builder(timeout=0.05, delay=1.0)

    with pytest.raises(DriverExecutionError) as exc_info:
        await builder.to("user@example.com").dispatch()

    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
    assert len(driver.calls) == 1


@pytest.mark.asyncio
async def test_retry_wrapper_retries_driver_failures():
    builder, driver = make_builder()
    attempts = []

    original = driver.execute

    async def flaky(payload):
        attempts.append(payload)
        if len(attempts) < 3:
            raise ConnectionError("temporary failure")
        return await original(payload)

    driver.execute = flaky

    result = await builder.to("user@example.com").retry(retrying(attempts=3, delays=(0,))).dispatch()

    assert result.status == "success"
    assert len(attempts) == 3
    assert builder.state == CommandState.EXECUTED


@pytest.mark.asyncio
async def test_retry_wrapper_gives_up():
    builder, driver = make_builder(fail_with=ConnectionError("down"))

    with pytest.raises(DriverExecutionError):
        await builder.retry(retrying(attempts=2, delays=(0,))).dispatch()

    assert len(driver.calls) == 2


def test_retrying_rejects_zero_attempts():
    with pytest.raises(InvalidArgumentError):
        retrying(attempts=0)


class HookedSpy(SpyDriver):
    HAS_AFTER_HOOK = True

    def __init__(self, config):
        super().__init__(config)
        self.after_calls: list[tuple[Payload, DispatchResult]] = []

    async def after(self, payload, result):
        self.after_calls.append((payload, result))


class UndeclaredHookSpy(SpyDriver):
    def __init__(self, config):
        super().__init__(config)
        self.after_calls = []

    async def after(self, payload, result):
        self.after_calls.append((payload, result))


@pytest.mark.asyncio
async def test_after_hook_runs_when_declared():
    driver = HookedSpy(DriverConfig(name="hooked", kind="memory"))

    result = await CommandBuilder("hooked", driver).to("x@example.com").dispatch()

    assert driver.after_calls == [(driver.calls[0], result)]


@pytest.mark.asyncio
async def test_after_hook_skipped_when_not_declared():
    driver = UndeclaredHookSpy(DriverConfig(name="plain", kind="memory"))

    await CommandBuilder("plain", driver).to("x@example.com").dispatch()

    assert driver.after_calls == []


def test_log_driver_declares_after_hook():
    assert LogDriver.HAS_AFTER_HOOK
    assert not SpyDriver.HAS_AFTER_HOOK


# =========================================
# Logging context
# =========================================

class ContextSpy(SpyDriver):
    """Captures the structlog context visible while the driver runs."""

    async def execute(self, payload: Payload) -> DispatchResult:
        self.context = structlog.contextvars.get_contextvars()
        return await super().execute(payload)


@pytest.mark.asyncio
async def test_driver_logs_carry_driver_name():
    driver = ContextSpy(DriverConfig(name="ctx", kind="memory"))

    await CommandBuilder("ctx", driver).to("x@example.com").dispatch()

    assert driver.context["driver"] == "ctx"
    assert "driver" not in structlog.contextvars.get_contextvars()


@pytest.mark.asyncio
async def test_logging_context_cleared_after_failure():
    driver = ContextSpy(DriverConfig(name="ctx", kind="memory"), fail_with=RuntimeError("boom"))

    with pytest.raises(DriverExecutionError):
        await CommandBuilder("ctx", driver).dispatch()

    assert driver.context["driver"] == "ctx"
    assert "driver" not in structlog.contextvars.get_contextvars()
