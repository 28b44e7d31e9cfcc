"""
Pytest configuration and fixtures.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("EXECUTE_TIMEOUT_SECONDS", "5")

from core.drivers import DispatchResult, Driver, DriverConfig, DriverKind, DriverRegistry, Payload  # noqa: E402
from manager.manager import DriverManager, get_manager  # noqa: E402


class SpyDriver(Driver):
    """Driver recording every execute() call, optionally slow or failing."""

    kind = DriverKind.MEMORY

    def __init__(
        self,
        config: DriverConfig,
        fail_with: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__(config)
        self.calls: list[Payload] = []
        self.fail_with = fail_with
        self.delay = delay
        self.closed = False

    async def execute(self, payload: Payload) -> DispatchResult:
        self.calls.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return DispatchResult(
            location=f"spy://{self.name}/{payload.name or len(self.calls)}",
            driver=self.name,
        )

    async def close(self) -> None:
        self.closed = True


def register_spy(registry: DriverRegistry, name: str, **kwargs) -> None:
    """Register a SpyDriver under *name*."""
    registry.register(
        name,
        DriverConfig(name=name, kind=DriverKind.MEMORY),
        lambda config: SpyDriver(config, **kwargs),
    )


@pytest.fixture
def registry():
    """Registry with two spy drivers, 'a' and 'b'."""
    reg = DriverRegistry()
    register_spy(reg, "a")
    register_spy(reg, "b")
    return reg


@pytest.fixture
def manager(registry):
    """Manager defaulting to spy driver 'a'."""
    mgr = DriverManager(registry, default="a", timeout=2)
    yield mgr
    mgr.reset()


@pytest.fixture(autouse=True)
def _reset_global_manager():
    """Keep the process-wide manager from leaking between tests."""
    get_manager.cache_clear()
    yield
    get_manager.cache_clear()
