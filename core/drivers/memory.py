"""
In-memory driver.

Keeps every dispatched payload in a list. Useful for tests, local
development and short-lived session-style persistence.
"""

import asyncio

from core.drivers.base import DispatchResult, Driver, DriverConfig, DriverKind, Payload
from core.logging import get_logger


logger = get_logger(__name__)


class MemoryDriver(Driver):
    """
    Driver that records payloads instead of delivering them.

    Usage:
        driver = MemoryDriver(DriverConfig("memory", "memory"))
        await driver.execute(Payload(destination="a@example.com"))
        assert driver.sent[0].destination == "a@example.com"
    """

    kind = DriverKind.MEMORY

    def __init__(self, config: DriverConfig):
        super().__init__(config)
        self.sent: list[Payload] = []
        self._lock = asyncio.Lock()

    async def execute(self, payload: Payload) -> DispatchResult:
        async with self._lock:
            self.sent.append(payload)
            index = len(self.sent)

        logger.debug("Payload recorded", driver=self.name, index=index)
        return DispatchResult(
            location=f"memory://{self.name}/{index}",
            driver=self.name,
        )

    def clear(self) -> None:
        """Drop recorded payloads (for testing)."""
        self.sent.clear()
