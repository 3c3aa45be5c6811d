"""
Banquet - Pacing.

Spaces out per-slot reasoning and catalog calls to stay under provider
rate limits.
"""

import asyncio
from typing import Protocol


class Pacer(Protocol):
    async def wait(self) -> None: ...


class FixedDelayPacer:
    """Sleeps a fixed interval on every wait(). A delay of 0 disables pacing."""

    def __init__(self, delay_seconds: float = 0.5) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds

    async def wait(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
