"""Behaviour shared by every flow type.

A flow is a :class:`~flowkit.work.unit.Work` that runs other units on
executor threads and folds their reports into its own. All flows:

- never let a fault escape ``execute``: a unit fault or an executor fault
  becomes a FAILED report carrying the fault, a cancellation becomes a
  TERMINATED report. Only ``Exception`` subclasses are faults: a
  ``SystemExit`` or ``KeyboardInterrupt`` raised by a unit is re-raised
  from ``execute`` of the flow waiting on it;
- track the handles of the units they submitted so that ``terminate`` can
  cancel whatever is outstanding;
- treat an interrupt of the thread they run on as a call to
  ``terminate(True)``. This is how cancelling an outer flow reaches the
  children of a nested one.

A flow instance runs one invocation at a time. Use :meth:`with_context` to
get an independent copy for concurrent invocations.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from concurrent.futures import CancelledError, Executor, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Generic, Self, TypeVar

from flowkit.work.context import WorkContext
from flowkit.work.handle import WorkHandle
from flowkit.work.interruption import current_interruption
from flowkit.work.report import Report, WorkReport
from flowkit.work.unit import Work

logger = logging.getLogger(__name__)

THREAD_NAME_PREFIX = "flowkit"


class FlowConfigurationError(ValueError):
    """A flow builder was given a configuration that cannot run."""


class AbstractWorkFlow(Work):
    def __init__(
        self, name: str, context: WorkContext, executor: Executor | None = None
    ) -> None:
        self._name = name
        self._context = context
        self._executor = executor
        self._reset_invocation_state()

    def _reset_invocation_state(self) -> None:
        self._lock = threading.Lock()
        self._handles: list[WorkHandle] = []
        self._terminate_requested = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def context(self) -> WorkContext:
        """Context used when ``execute`` is called without one."""

        return self._context

    @property
    def executor(self) -> Executor | None:
        """The injected executor, or ``None`` for a per-invocation pool."""

        return self._executor

    @property
    def handles(self) -> list[WorkHandle]:
        """Handles submitted during the current (or last) invocation."""

        with self._lock:
            return list(self._handles)

    def with_context(self, context: WorkContext) -> Self:
        clone = copy.copy(self)
        clone._context = context
        clone._reset_invocation_state()
        return clone

    def execute(self, context: WorkContext | None = None) -> Report:
        ctx = context if context is not None else self._context
        with self._lock:
            self._handles = []
            self._terminate_requested = False

        token = current_interruption()
        on_interrupt = self._interrupted
        if token is not None:
            token.add_callback(on_interrupt)
        logger.debug("Flow started", extra={"flow": self._name, "flow_type": type(self).__name__})
        try:
            with self._executor_scope() as executor:
                report = self._run(ctx, executor)
        finally:
            if token is not None:
                token.remove_callback(on_interrupt)
        logger.debug(
            "Flow finished",
            extra={"flow": self._name, "status": report.status.value},
        )
        return report

    @abstractmethod
    def _run(self, context: WorkContext, executor: Executor) -> Report:
        """Flow-specific control logic."""

    def terminate(self, may_interrupt_if_running: bool = True) -> None:
        """Cancel every outstanding unit of the current invocation.

        Units not yet submitted will not start. Running units are interrupted
        only when ``may_interrupt_if_running`` is true. Safe to call from any
        thread.
        """

        with self._lock:
            self._terminate_requested = True
            handles = list(self._handles)
        logger.info(
            "Terminating flow",
            extra={
                "flow": self._name,
                "outstanding": sum(1 for h in handles if not h.done()),
                "interrupt": may_interrupt_if_running,
            },
        )
        for handle in handles:
            handle.cancel(may_interrupt_if_running)

    @property
    def terminate_requested(self) -> bool:
        """Whether ``terminate`` was called during the current invocation."""

        with self._lock:
            return self._terminate_requested

    def _interrupted(self) -> None:
        self.terminate(True)

    @contextmanager
    def _executor_scope(self) -> Iterator[Executor]:
        if self._executor is not None:
            yield self._executor
            return
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=THREAD_NAME_PREFIX)
        try:
            yield pool
        finally:
            # An interrupted unit may still be winding down; don't wait for it.
            pool.shutdown(wait=False, cancel_futures=True)

    def _track(self, handle: WorkHandle) -> WorkHandle:
        with self._lock:
            self._handles.append(handle)
            terminated = self._terminate_requested
        if terminated:
            handle.cancel(False)
        return handle

    def _call(self, work: Work, context: WorkContext, executor: Executor) -> Report:
        """Run ``work`` on ``executor`` and wait for its report.

        Raises:
            CancelledError: The flow was terminated.
            Exception: A fault of the unit or of the executor.
        """

        handle = self._track(WorkHandle(work, context))
        if not handle.cancelled():
            handle.submit(executor)
        return handle.result()

    def _report_fault(self, exc: Exception, context: WorkContext, work: Work) -> WorkReport:
        if isinstance(exc, CancelledError):
            logger.info(
                "Work unit was cancelled, flow terminated",
                extra={"flow": self._name, "work": work.name},
            )
            return WorkReport.terminated(context, exc)
        logger.warning(
            "Work unit raised, flow failed",
            extra={"flow": self._name, "work": work.name, "error": repr(exc)},
            exc_info=exc,
        )
        return WorkReport.failed(context, exc)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


FlowT = TypeVar("FlowT", bound=AbstractWorkFlow)


class FlowBuilder(ABC, Generic[FlowT]):
    """Fluent configuration shared by all flow builders."""

    def __init__(self) -> None:
        self._name = str(uuid.uuid4())
        self._context = WorkContext()
        self._executor: Executor | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def context(self) -> WorkContext:
        return self._context

    @property
    def executor(self) -> Executor | None:
        return self._executor

    def named(self, name: str) -> Self:
        self._name = name
        return self

    def with_context(self, context: WorkContext) -> Self:
        self._context = context
        return self

    def with_executor(self, executor: Executor) -> Self:
        """Run units on a caller-owned executor instead of a per-invocation pool.

        The flow never shuts it down. When flows nest, the executor needs a
        worker for every level that is running at the same time.
        """

        self._executor = executor
        return self

    @abstractmethod
    def build(self) -> FlowT: ...
