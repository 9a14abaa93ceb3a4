"""
Project countdown
Remaining time derived from a start time and a deadline in hours
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Optional

from pydantic import BaseModel

EXPIRED_LABEL = "Time's up"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimerState(BaseModel):
    remaining_seconds: int
    expired: bool
    display: str


def format_remaining(seconds: int) -> str:
    """'5h 3m 9s' style label; hours are not wrapped into days."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


@dataclass(frozen=True)
class ProjectTimer:
    """Countdown for one project. Purely derived: never touches the store."""
    start_time: datetime
    deadline_hours: int

    @property
    def deadline(self) -> datetime:
        return self.start_time + timedelta(hours=self.deadline_hours)

    def remaining(self, now: Optional[datetime] = None) -> timedelta:
        return self.deadline - (now or utc_now())

    def state(self, now: Optional[datetime] = None) -> TimerState:
        remaining = self.remaining(now)
        if remaining <= timedelta(0):
            return TimerState(remaining_seconds=0, expired=True, display=EXPIRED_LABEL)
        seconds = int(remaining.total_seconds())
        return TimerState(remaining_seconds=seconds, expired=False, display=format_remaining(seconds))

    async def countdown(
        self,
        clock: Callable[[], datetime] = utc_now,
        interval: float = 1.0,
    ) -> AsyncIterator[TimerState]:
        """
        Yield the timer state every interval seconds

        Stops after yielding the first expired state. Cancel the consuming
        task to stop earlier.
        """
        while True:
            state = self.state(clock())
            yield state
            if state.expired:
                return
            await asyncio.sleep(interval)
