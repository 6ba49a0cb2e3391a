"""Fixed-interval cycle scheduler."""

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Scheduler:
    """Run a cycle immediately, then once per interval tick, until stopped.

    Ticks are fixed-phase (start + k * interval). Cycles never overlap: ticks
    that elapse while a cycle is running collapse into a single pending tick,
    which starts the next cycle as soon as the current one returns.
    """

    def __init__(
        self,
        run_cycle: Callable[[], object],
        interval: timedelta,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval.total_seconds() <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._run_cycle = run_cycle
        self.interval = interval.total_seconds()
        self.stop_event = stop_event or threading.Event()
        self._clock = clock

    def stop(self) -> None:
        self.stop_event.set()

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Loop until stopped (or `max_cycles` cycles ran). Returns the number of cycles run."""
        next_tick = self._clock() + self.interval
        cycles = 0

        while not self.stop_event.is_set():
            self._run_once()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break

            now = self._clock()
            if now >= next_tick:
                missed = int((now - next_tick) // self.interval)
                if missed:
                    logger.warning("Cycle overran the interval, dropping %d ticks", missed)
                next_tick += (missed + 1) * self.interval
                logger.info("Cycle over. Next one is already due")
                continue

            logger.info("Cycle over. Waiting for the next one...")
            if self.stop_event.wait(next_tick - now):
                break
            next_tick += self.interval

        logger.info("Scheduler stopped after %d cycles", cycles)
        return cycles

    def _run_once(self) -> None:
        try:
            self._run_cycle()
        except Exception:
            logger.exception("Cycle failed")
