"""Clock used by the orchestrator for timestamps and think-time waits."""

import asyncio
from datetime import datetime
from typing import Protocol

from specdrive.models.domain import utcnow


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Wall-clock time and real asyncio sleeps."""

    def now(self) -> datetime:
        return utcnow()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
