"""
Append-only log driver.

Each payload becomes one JSON line in the configured file. Nothing is ever
rewritten, which makes the file usable as an audit trail or a mail catcher
in development.
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import aiofiles

from core.drivers.base import DispatchResult, Driver, DriverConfig, DriverKind, Payload
from core.logging import get_logger


logger = get_logger(__name__)


class LogDriver(Driver):
    """
    Driver appending payloads to a JSON-lines file.

    Declares the after-dispatch hook to echo the written record through
    the application logger.
    """

    kind = DriverKind.LOG
    REQUIRED_KEYS = ("location",)
    HAS_AFTER_HOOK = True

    def __init__(self, config: DriverConfig):
        super().__init__(config)
        self.path = Path(config["location"]).resolve()
        self._lock = asyncio.Lock()
        self._lines: int | None = None

    async def _count_lines(self) -> int:
        if not self.path.exists():
            return 0
        count = 0
        async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
            async for _ in f:
                count += 1
        return count

    async def execute(self, payload: Payload) -> DispatchResult:
        record = {
            "logged_at": datetime.now(timezone.utc).isoformat(),
            **payload.to_dict(),
        }
        line = json.dumps(record, ensure_ascii=False, default=str)

        async with self._lock:
            if self._lines is None:
                self._lines = await self._count_lines()
            await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(self.path, mode="a", encoding="utf-8") as f:
                await f.write(line + "\n")
            self._lines += 1
            line_no = self._lines

        return DispatchResult(location=f"{self.path}#{line_no}", driver=self.name)

    async def after(self, payload: Payload, result: DispatchResult) -> None:
        logger.info(
            "Payload logged",
            driver=self.name,
            location=result.location,
            destination=payload.destination,
            subject=payload.subject,
        )
