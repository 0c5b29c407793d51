"""
Time source and cooperative cancellation shared by every blocking wait.

All waits in avabox (port probing, readiness polling, transaction status
polling) go through a Clock and observe a CancelSignal, so a caller can
abort the whole network start with one call and tests can run the pollers
without real delays.
"""

import asyncio
import random
import time
from typing import Optional

from avabox.commands.errors import CancellationError


class CancelSignal:
    """Shared cancellation flag that waits can race against."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self, waiting_for: str, node_index: Optional[int] = None):
        """Raise CancellationError if the signal has fired."""
        if self.cancelled:
            raise CancellationError(
                f"Cancelled while waiting for {waiting_for}: {self.reason}",
                waiting_for=waiting_for,
                node_index=node_index,
            )


class Clock:
    """Wall clock backed by the running event loop."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def sleep_or_cancel(
        self,
        seconds: float,
        cancel: Optional[CancelSignal],
        waiting_for: str,
        node_index: Optional[int] = None,
    ) -> None:
        """Sleep for ``seconds`` unless the cancel signal fires first.

        Raises:
            CancellationError: if the signal fired before or during the sleep.
        """
        if cancel is None:
            await self.sleep(seconds)
            return

        cancel.raise_if_cancelled(waiting_for, node_index)
        sleeper = asyncio.ensure_future(self.sleep(seconds))
        watcher = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait(
                {sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (sleeper, watcher):
                if not task.done():
                    task.cancel()
        cancel.raise_if_cancelled(waiting_for, node_index)


def poll_delay(interval: float, jitter: float = 0.0, rng: Optional[random.Random] = None) -> float:
    """Delay before the next poll: the fixed interval plus uniform jitter."""
    if jitter <= 0:
        return interval
    rng = rng or random
    return interval + rng.uniform(0, jitter)
