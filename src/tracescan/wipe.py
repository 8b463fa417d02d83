"""
Wipe simulation progress stream.

The simulation performs no I/O against any volume. It only produces the
ordered progress events the UI animates; a consumer iterates the stream and
may stop it with :meth:`WipeSimulation.cancel`.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Optional

STEP_MESSAGES = [
    "Enumerating target blocks",
    "Overwriting with zeros",
    "Overwriting with ones",
    "Overwriting with random data",
    "Clearing file slack",
    "Clearing free space",
    "Purging swap residue",
    "Removing snapshot residue",
    "Verifying overwrite",
    "Finalizing",
]


@dataclass(frozen=True)
class ProgressEvent:
    step: int
    total_steps: int
    progress_percent: float
    message: str
    completed: bool

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "total_steps": self.total_steps,
            "progress_percent": self.progress_percent,
            "message": self.message,
            "completed": self.completed,
        }


class WipeSimulation:
    """Produces ``total_steps`` progress events, one per step."""

    def __init__(self, target: str = "", total_steps: int = 10, step_delay: float = 0.5):
        if total_steps < 1:
            raise ValueError("total_steps must be at least 1")
        self.target = target
        self.total_steps = total_steps
        self.step_delay = step_delay
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def _message(self, step: int) -> str:
        base = STEP_MESSAGES[(step - 1) % len(STEP_MESSAGES)]
        return f"{base} ({self.target})" if self.target else base

    async def _pause(self) -> None:
        if self.step_delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.step_delay)
        except asyncio.TimeoutError:
            pass

    async def stream(self) -> AsyncIterator[ProgressEvent]:
        """
        Yield progress events in step order.

        The last event has ``completed=True`` and 100 percent. After
        ``cancel()`` one final event with ``completed=False`` reports the step
        reached, then the stream ends.
        """
        last: Optional[ProgressEvent] = None
        for step in range(1, self.total_steps + 1):
            if self.cancelled:
                break
            await self._pause()
            if self.cancelled:
                break
            last = ProgressEvent(
                step=step,
                total_steps=self.total_steps,
                progress_percent=round(step / self.total_steps * 100, 1),
                message=self._message(step),
                completed=step == self.total_steps,
            )
            yield last

        if self.cancelled and not (last and last.completed):
            reached = last.step if last else 0
            yield ProgressEvent(
                step=reached,
                total_steps=self.total_steps,
                progress_percent=round(reached / self.total_steps * 100, 1),
                message="Cancelled",
                completed=False,
            )
