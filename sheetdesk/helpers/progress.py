"""
Two-phase upload progress.

While a file is transferring, the displayed value is fed by two sources:
the real byte count scaled into ``[0, ceiling]`` and a synthetic ticker
that keeps the bar moving when the network reports little. Both go through
``merge_progress`` so the display never moves backwards and never passes the
ceiling until the service confirms the upload.
"""

import asyncio
import logging
from typing import Callable, Optional

from sheetdesk import frontend_config as config

logger = logging.getLogger(__name__)


def scale_transfer(sent: int, total: int, ceiling: int = config.TRANSFER_CEILING) -> int:
    """Map bytes sent onto ``[0, ceiling]``."""
    if total <= 0:
        return 0
    sent = max(0, min(sent, total))
    return (sent * ceiling) // total


def merge_progress(displayed: int, candidate: int, ceiling: int = config.TRANSFER_CEILING) -> int:
    """Whichever source is further ahead wins, clamped to the ceiling."""
    return min(ceiling, max(displayed, candidate))


class TransferProgress:
    """Displayed progress of one transfer."""

    def __init__(self, ceiling: int = config.TRANSFER_CEILING):
        self.ceiling = ceiling
        self.value = 0

    def on_bytes(self, sent: int, total: int) -> int:
        self.value = merge_progress(self.value, scale_transfer(sent, total, self.ceiling), self.ceiling)
        return self.value

    def on_tick(self, step: int) -> int:
        self.value = merge_progress(self.value, self.value + step, self.ceiling)
        return self.value

    def complete(self) -> int:
        self.value = 100
        return self.value

    def reset(self) -> int:
        self.value = 0
        return self.value


class SyntheticTicker:
    """Advance a ``TransferProgress`` on a fixed interval until it reaches the ceiling."""

    def __init__(
        self,
        progress: TransferProgress,
        on_change: Callable[[int], None],
        step: int = config.PROGRESS_TICK_STEP,
        interval: float = config.PROGRESS_TICK_SECONDS,
    ):
        self.progress = progress
        self.on_change = on_change
        self.step = step
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        while self.progress.value < self.progress.ceiling:
            await asyncio.sleep(self.interval)
            self.on_change(self.progress.on_tick(self.step))
        logger.debug("synthetic progress reached %d%%", self.progress.value)
