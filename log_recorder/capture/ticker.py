"""Asyncio driver that ticks a recorder at a fixed cadence."""

from __future__ import annotations

import asyncio
import logging

from ..common.constants import TICK_INTERVAL
from .recorder import LogRecorder

logger = logging.getLogger(__name__)


async def run_tick_loop(
    recorder: LogRecorder,
    stop: asyncio.Event,
    interval: float = TICK_INTERVAL,
) -> int:
    """Tick the recorder every ``interval`` seconds until ``stop`` is set.

    A final tick runs after ``stop`` so nothing captured before it is left
    queued. Ticks run on the event loop thread, which makes it the recorder's
    tick thread; a slow file append delays the loop accordingly.

    Returns:
        Number of ticks performed.
    """
    ticks = 0
    while not recorder.is_shutting_down:
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
        recorder.on_tick()
        ticks += 1
        if stop.is_set():
            break

    logger.debug("Tick loop stopped after %d ticks", ticks)
    return ticks
