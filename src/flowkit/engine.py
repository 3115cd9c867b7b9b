"""Workflow engine: a shared worker pool plus run/submit entry points."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from types import TracebackType

from flowkit.config import EngineSettings
from flowkit.flows.base import AbstractWorkFlow
from flowkit.work.context import WorkContext
from flowkit.work.handle import WorkHandle
from flowkit.work.report import Report, WorkReport
from flowkit.work.unit import Work

logger = logging.getLogger(__name__)


class WorkFlowEngine:
    """Runs flows and owns the worker pool they may share.

    Pass :attr:`executor` to flow builders (``with_executor``) so every flow
    draws from one bounded pool instead of creating threads per invocation.
    The engine shuts the pool down on :meth:`shutdown` unless the pool was
    injected, in which case its owner does.
    """

    def __init__(
        self, settings: EngineSettings | None = None, executor: Executor | None = None
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Engine settings. If None, loads from environment.
            executor: Caller-owned executor. If None, the engine creates one
                sized by ``settings.max_workers``.
        """
        self.settings = settings or EngineSettings()
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix=self.settings.thread_name_prefix,
        )
        logger.info(
            "Workflow engine initialized",
            extra={
                "max_workers": self.settings.max_workers,
                "owns_executor": self._owns_executor,
            },
        )

    @property
    def executor(self) -> Executor:
        return self._executor

    def run(self, work: Work, context: WorkContext | None = None) -> Report:
        """Run a flow (or any unit) on the calling thread.

        Args:
            work: Flow or unit to run.
            context: Context to run against. Defaults to the flow's own
                context, or a fresh one for plain units.

        Returns:
            The report of the run. Faults of a plain unit are reported as
            FAILED rather than raised.
        """
        ctx = self._resolve_context(work, context)
        logger.info("Running workflow", extra={"flow": work.name})
        try:
            report = work.execute(ctx)
        except Exception as exc:
            logger.exception("Workflow raised", extra={"flow": work.name})
            return WorkReport.failed(ctx, exc)
        logger.info(
            "Workflow finished", extra={"flow": work.name, "status": report.status.value}
        )
        return report

    def submit(self, work: Work, context: WorkContext | None = None) -> WorkHandle:
        """Run a flow on the engine's pool.

        Cancelling the returned handle with ``may_interrupt_if_running=True``
        interrupts the flow, which terminates whatever it is running.
        """
        ctx = self._resolve_context(work, context)
        logger.info("Submitting workflow", extra={"flow": work.name})
        return WorkHandle(work, ctx).submit(self._executor)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            logger.info("Shutting down workflow engine")
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> WorkFlowEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown(wait=True)

    @staticmethod
    def _resolve_context(work: Work, context: WorkContext | None) -> WorkContext:
        if context is not None:
            return context
        if isinstance(work, AbstractWorkFlow):
            return work.context
        return WorkContext()
