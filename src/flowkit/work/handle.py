"""Cancellable handle around one submission of a unit of work."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Executor, Future, InvalidStateError

from . import interruption
from .context import WorkContext
from .report import Report
from .unit import Work

logger = logging.getLogger(__name__)


class WorkHandle:
    """Runs ``work.execute(context)`` on an executor thread.

    Unlike a bare ``concurrent.futures.Future``, a running unit can be
    cancelled: ``cancel(True)`` settles the handle as cancelled at once and
    fires the unit's interruption token. The worker thread keeps running
    until the unit notices; whatever it returns afterwards is discarded.
    """

    def __init__(self, work: Work, context: WorkContext) -> None:
        self.work = work
        self.context = context
        self.interruption = interruption.Interruption()
        self._future: Future[Report] = Future()
        self._started = threading.Event()
        self._interrupted = False

    @property
    def future(self) -> Future[Report]:
        return self._future

    @property
    def started(self) -> bool:
        return self._started.is_set()

    def submit(self, executor: Executor) -> WorkHandle:
        """Hand the unit to ``executor``; faults of the executor propagate."""

        executor.submit(self._run)
        return self

    def _run(self) -> None:
        if not self._future.set_running_or_notify_cancel():
            logger.debug("Skipping cancelled work", extra={"work": self.work.name})
            return
        self._started.set()
        with interruption.bound(self.interruption):
            try:
                report = self.work.execute(self.context)
            except BaseException as exc:
                settled = self._settle(exception=exc)
            else:
                settled = self._settle(result=report)
        if not settled:
            logger.debug("Discarded outcome of interrupted work", extra={"work": self.work.name})

    def _settle(
        self, *, result: Report | None = None, exception: BaseException | None = None
    ) -> bool:
        try:
            if exception is not None:
                self._future.set_exception(exception)
            else:
                self._future.set_result(result)  # type: ignore[arg-type]
        except InvalidStateError:
            return False
        return True

    def cancel(self, may_interrupt_if_running: bool = True) -> bool:
        """Cancel the unit.

        Returns:
            True if the handle is now cancelled, False if it had already
            finished or is running and ``may_interrupt_if_running`` is False.
        """

        if self._future.cancel():
            return True
        if not may_interrupt_if_running or self._future.done():
            return False
        self._interrupted = True
        if not self._settle(
            exception=CancelledError(f"work '{self.work.name}' was interrupted")
        ):
            # Finished on its own in the meantime.
            self._interrupted = False
            return False
        self.interruption.interrupt()
        return True

    def cancelled(self) -> bool:
        return self._future.cancelled() or (self._interrupted and self._future.done())

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> Report:
        """Block until the unit finishes.

        Raises:
            CancelledError: The handle was cancelled.
            Exception: The unit's own fault.
        """

        return self._future.result(timeout)

    def __repr__(self) -> str:
        if self.cancelled():
            state = "cancelled"
        elif self.done():
            state = "done"
        elif self.started:
            state = "running"
        else:
            state = "pending"
        return f"WorkHandle(work={self.work.name!r}, state={state})"
