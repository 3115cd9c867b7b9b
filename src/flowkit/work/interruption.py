"""Cooperative interruption of work running on a worker thread.

Python cannot stop a thread from the outside. When a running unit is
cancelled with ``may_interrupt_if_running=True`` its handle settles as
cancelled straight away and the unit's :class:`Interruption` token is fired.
Units that want to stop early poll :func:`is_interrupted`, call
:func:`check_interrupted`, or wait with :func:`sleep` instead of
``time.sleep``. Flows register on the token of the thread they run on, so an
interrupt reaches nested flows and their children.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_local = threading.local()


class WorkInterrupted(Exception):
    """Raised inside a unit of work that observed an interrupt request."""


class Interruption:
    """A one-shot interrupt flag with callbacks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def interrupt(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register ``callback``; it runs at once if already interrupted."""

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


def current_interruption() -> Interruption | None:
    """Token of the unit running on this thread, ``None`` outside a handle."""

    return getattr(_local, "interruption", None)


@contextmanager
def bound(token: Interruption) -> Iterator[Interruption]:
    previous = current_interruption()
    _local.interruption = token
    try:
        yield token
    finally:
        _local.interruption = previous


def is_interrupted() -> bool:
    token = current_interruption()
    return token is not None and token.is_set()


def check_interrupted() -> None:
    if is_interrupted():
        raise WorkInterrupted("work was interrupted")


def sleep(seconds: float) -> None:
    """Sleep like ``time.sleep`` but wake up and raise when interrupted."""

    token = current_interruption()
    if token is None:
        time.sleep(seconds)
        return
    if token.wait(seconds):
        logger.debug("Sleep interrupted", extra={"seconds": seconds})
        raise WorkInterrupted("work was interrupted while sleeping")
