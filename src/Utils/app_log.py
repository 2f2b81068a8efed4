"""
app_log.py
Application log sink for the Harmony deploy integration.

The host calls set_app_log(log_fn, after_fn) once its log panel exists.
Harmony code calls app_log(msg) so deploy/merge messages show up there as
well as in the standard ``logging`` output.

Thread safety: merges run on the host's deploy worker, so messages from any
thread other than the one that registered the sink are queued and drained on
that thread via a periodic after() callback.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

log = logging.getLogger("harmony")

_LEVELS = {
    "debug": logging.DEBUG,
    "info":  logging.INFO,
    "warn":  logging.WARNING,
    "error": logging.ERROR,
}

_log_fn: Callable[[str], None] | None = None
_after_fn: Callable | None = None
_main_thread_id: int | None = None
_log_queue: queue.Queue[str] = queue.Queue()


def _drain_log_queue() -> None:
    """Run on the sink's thread: flush queued messages, then reschedule."""
    if _log_fn is None:
        return
    while True:
        try:
            msg = _log_queue.get_nowait()
        except queue.Empty:
            break
        _log_fn(msg)
    if _after_fn is not None:
        _after_fn(50, _drain_log_queue)


def set_app_log(log_fn: Callable[[str], None], after_fn: Callable) -> None:
    """Register the panel log function and a main-thread scheduler (e.g. app.after)."""
    global _log_fn, _after_fn, _main_thread_id
    _log_fn = log_fn
    _after_fn = after_fn
    _main_thread_id = threading.current_thread().ident
    after_fn(0, _drain_log_queue)


def clear_app_log() -> None:
    """Detach the panel sink. Queued messages are dropped."""
    global _log_fn, _after_fn, _main_thread_id
    _log_fn = None
    _after_fn = None
    _main_thread_id = None
    while not _log_queue.empty():
        _log_queue.get_nowait()


def app_log(message: str, level: str = "info") -> None:
    """Log *message* and forward it to the panel sink if one is registered."""
    log.log(_LEVELS.get(level, logging.INFO), message)
    if _log_fn is None:
        return
    text = message if level == "info" else f"[{level}] {message}"
    if threading.current_thread().ident == _main_thread_id:
        _log_fn(text)
    else:
        _log_queue.put_nowait(text)
