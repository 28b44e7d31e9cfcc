"""
Local filesystem driver.

Writes payload content to ``<location>/<name>``.
"""

import asyncio
import os
from pathlib import Path

import aiofiles

from core.drivers.base import DispatchResult, Driver, DriverConfig, DriverKind, Payload
from core.errors import InvalidArgumentError
from core.logging import get_logger


logger = get_logger(__name__)


def safe_join(base: str, rel_path: str) -> Path:
    """
    Join a root directory and a relative name, refusing path traversal.

    Args:
        base: Root directory
        rel_path: Name supplied by the caller

    Returns:
        Absolute path inside base

    Raises:
        InvalidArgumentError: If the result escapes base
    """
    base_path = Path(base).resolve()
    clean = rel_path.replace("\\", "/").strip().lstrip("/")
    final_path = (base_path / clean).resolve()

    if final_path != base_path and base_path not in final_path.parents:
        raise InvalidArgumentError(f"Path escapes storage root: {rel_path}")
    if final_path == base_path:
        raise InvalidArgumentError(f"Invalid file name: {rel_path!r}")
    return final_path


class FilesystemDriver(Driver):
    """Implementation for local filesystem storage."""

    kind = DriverKind.FILESYSTEM
    REQUIRED_KEYS = ("location",)

    def __init__(self, config: DriverConfig):
        super().__init__(config)
        self.root = os.path.abspath(config["location"])

    async def execute(self, payload: Payload) -> DispatchResult:
        if not payload.name:
            raise InvalidArgumentError("Filesystem driver needs a file name")

        full_path = safe_join(self.root, payload.name)
        await asyncio.to_thread(full_path.parent.mkdir, parents=True, exist_ok=True)

        async with aiofiles.open(full_path, mode="wb") as f:
            await f.write(payload.content_bytes)

        logger.info(
            "File stored",
            driver=self.name,
            path=str(full_path),
            size=len(payload.content_bytes),
        )
        return DispatchResult(location=str(full_path), driver=self.name)
