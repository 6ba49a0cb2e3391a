"""Common CLI helper utilities."""

from __future__ import annotations

import logging
import signal
import threading

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure standard logging format for CLI tools."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def install_stop_handlers(stop_event: threading.Event) -> None:
    """Set `stop_event` on SIGINT/SIGTERM so long-running loops can exit cleanly."""

    def _handle(signum, _frame) -> None:
        logging.getLogger(__name__).info("Received %s, shutting down", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
