"""
Logging utilities for the CLI and for search worker processes.
"""
from __future__ import annotations

import logging
import multiprocessing
import sys
import threading
from logging.handlers import QueueHandler
from queue import Empty
from typing import Optional, TextIO

PACKAGE_LOGGER = "almanac_toolkit"


def configure_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Attach a console handler to the package logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
        stream: Output stream. Defaults to stderr.

    Returns:
        The attached handler (for later removal).
    """
    level = [logging.WARNING, logging.INFO][verbosity] if verbosity < 2 else logging.DEBUG
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


# =============================================================================
# Multiprocessing Logging Support
# =============================================================================

def configure_worker_logging(mp_log_queue: multiprocessing.Queue, level: int = logging.INFO) -> None:
    """
    Configure logging in a child process to send logs to a multiprocessing queue.

    Called from the ProcessPoolExecutor initializer so worker log records
    reach the parent's handlers.

    Args:
        mp_log_queue: Multiprocessing queue to send log records to.
        level: Minimum level forwarded by the worker.
    """
    # Get root logger and remove all existing handlers
    root = logging.getLogger()
    root.handlers = []

    # Package loggers may carry handlers inherited through fork
    package = logging.getLogger(PACKAGE_LOGGER)
    package.handlers = []
    package.setLevel(level)

    root.addHandler(QueueHandler(mp_log_queue))
    root.setLevel(level)


def start_log_listener(
    mp_log_queue: multiprocessing.Queue,
    stop_event: threading.Event,
) -> threading.Thread:
    """
    Start a listener thread that reads worker records from the queue and
    hands them to the parent's loggers.

    Args:
        mp_log_queue: Multiprocessing queue that workers write to.
        stop_event: Event to signal listener to stop.

    Returns:
        The listener thread (already started).

    Example:
        >>> stop_event = threading.Event()
        >>> listener = start_log_listener(mp_queue, stop_event)
        >>> # ... do work ...
        >>> stop_event.set()
        >>> listener.join()
    """
    def _listener():
        while True:
            try:
                record = mp_log_queue.get(timeout=0.1)
            except Empty:
                if stop_event.is_set():
                    break
                continue
            except (EOFError, OSError):
                break
            if record is None:  # Sentinel value
                break
            logging.getLogger(record.name).handle(record)

    thread = threading.Thread(target=_listener, name="worker-log-listener", daemon=True)
    thread.start()
    return thread
