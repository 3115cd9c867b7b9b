"""Parallel fan-out / join.

A :class:`ParallelFlow` needs an executor to run its units on several
threads. The caller owns that executor: it creates it, hands it to
:meth:`ParallelFlow.builder`, and shuts it down when done. The flow never
does.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import CancelledError, Executor, wait
from typing import cast

from flowkit.work.context import WorkContext
from flowkit.work.handle import WorkHandle
from flowkit.work.report import ParallelFlowReport, Report, WorkReport
from flowkit.work.unit import Work

from .base import AbstractWorkFlow, FlowBuilder, FlowConfigurationError

logger = logging.getLogger(__name__)


class ParallelFlowExecutor:
    """Submits units to an executor and joins them all."""

    def __init__(self, executor: Executor) -> None:
        self._executor = executor

    @property
    def executor(self) -> Executor:
        return self._executor

    def execute_in_parallel(
        self,
        works: Sequence[Work],
        context: WorkContext,
        register: Callable[[WorkHandle], WorkHandle] | None = None,
    ) -> list[Report]:
        """Run every unit and return their reports in submission order.

        Args:
            works: Units to run; all see the same ``context``.
            context: Shared context.
            register: Called with each handle before it is submitted.

        Returns:
            One report per unit, index-aligned with ``works``. A unit that
            raised gets a FAILED report carrying the fault; a cancelled unit
            gets a TERMINATED one.

        Raises:
            Exception: The executor rejected a submission. Units already
                submitted are cancelled first.
        """

        handles = [WorkHandle(work, context) for work in works]
        if register is not None:
            handles = [register(h) for h in handles]
        try:
            for handle in handles:
                if not handle.cancelled():
                    handle.submit(self._executor)
        except Exception:
            for handle in handles:
                handle.cancel(True)
            raise

        wait([h.future for h in handles])
        return [self._report_of(h, context) for h in handles]

    @staticmethod
    def _report_of(handle: WorkHandle, context: WorkContext) -> Report:
        try:
            return handle.result()
        except CancelledError as exc:
            return WorkReport.terminated(context, exc)
        except Exception as exc:
            logger.warning(
                "Work unit raised in parallel flow",
                extra={"work": handle.work.name, "error": repr(exc)},
                exc_info=exc,
            )
            return WorkReport.failed(context, exc)


class ParallelFlow(AbstractWorkFlow):
    """Runs units concurrently, waits for all of them, aggregates.

    There is no short-circuit: a failing unit does not stop its siblings.
    The aggregate is FAILED if any child is FAILED, TERMINATED if the flow
    itself was terminated, and COMPLETED otherwise.
    """

    def __init__(
        self,
        name: str,
        works: Sequence[Work],
        parallel_executor: ParallelFlowExecutor,
        context: WorkContext,
    ) -> None:
        super().__init__(name, context, parallel_executor.executor)
        self._works: tuple[Work, ...] = tuple(works)
        self._parallel_executor = parallel_executor

    @property
    def works(self) -> tuple[Work, ...]:
        return self._works

    @staticmethod
    def builder(executor: Executor) -> ParallelFlowBuilder:
        return ParallelFlowBuilder(executor)

    def execute(self, context: WorkContext | None = None) -> ParallelFlowReport:
        return cast(ParallelFlowReport, super().execute(context))

    def _run(self, context: WorkContext, executor: Executor) -> ParallelFlowReport:
        try:
            reports = self._parallel_executor.execute_in_parallel(
                self._works, context, register=self._track
            )
        except Exception as exc:
            logger.warning(
                "Executor rejected parallel flow",
                extra={"flow": self.name, "error": repr(exc)},
                exc_info=exc,
            )
            return ParallelFlowReport(context=context, fault=exc)
        return ParallelFlowReport(reports, context, terminated=self.terminate_requested)


class ParallelFlowBuilder(FlowBuilder[ParallelFlow]):
    def __init__(self, executor: Executor) -> None:
        super().__init__()
        self._executor = executor
        self._works: list[Work] = []

    @property
    def works(self) -> list[Work]:
        return list(self._works)

    def execute(self, *works: Work) -> ParallelFlowBuilder:
        self._works.extend(works)
        return self

    def build(self) -> ParallelFlow:
        if self._executor is None:
            raise FlowConfigurationError(f"Parallel flow '{self._name}' needs an executor")
        return ParallelFlow(
            self._name, self._works, ParallelFlowExecutor(self._executor), self._context
        )
