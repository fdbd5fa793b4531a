"""Restart signalling for the renewal supervisor.

A RestartSignal is created by the supervisor at the start of every cycle and
handed to the scan as a read-only CancellationToken. Triggering the signal
never raises inside the scan; the scan and the cadence sleep observe it at
their own checkpoints and return early.
"""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Read-only view of a RestartSignal."""

    def __init__(self, event: asyncio.Event) -> None:
        self._event = event

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep for up to *timeout* seconds, waking early on cancellation.

        Returns True if the token was cancelled, False if the timeout elapsed.
        """
        if timeout <= 0:
            await asyncio.sleep(0)
            return self.is_cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except TimeoutError:
            return False
        return True


class RestartSignal:
    """One cycle's cancellation source. Once replaced, triggering it is a no-op
    for the supervisor because nothing waits on its token any more."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.token = CancellationToken(self._event)

    @property
    def triggered(self) -> bool:
        return self._event.is_set()

    def trigger(self) -> None:
        self._event.set()
