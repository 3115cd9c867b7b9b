from __future__ import annotations

import logging
from concurrent.futures import Executor

from flowkit.work.context import WorkContext
from flowkit.work.predicate import WorkReportPredicate
from flowkit.work.report import Report
from flowkit.work.unit import NoOpWork, Work

from .base import AbstractWorkFlow, FlowBuilder

logger = logging.getLogger(__name__)


class RepeatFlow(AbstractWorkFlow):
    """Executes a unit again for as long as the predicate holds on its report.

    The predicate decides continuation: ``ALWAYS_FALSE`` runs the unit once,
    ``ALWAYS_TRUE`` never stops. Reports with FAILED status are handed to the
    predicate like any other, so ``until(WorkReportPredicate.FAILED)`` keeps
    going while the unit fails. A fault or a cancellation ends the loop.
    Each invocation evaluates its own :meth:`~WorkReportPredicate.fresh` copy
    of the predicate, so ``times(n)`` means n runs per invocation.
    """

    def __init__(
        self,
        name: str,
        work: Work,
        predicate: WorkReportPredicate,
        context: WorkContext,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(name, context, executor)
        self._work = work
        self._predicate = predicate

    @property
    def work(self) -> Work:
        return self._work

    @property
    def predicate(self) -> WorkReportPredicate:
        return self._predicate

    @staticmethod
    def builder() -> RepeatFlowBuilder:
        return RepeatFlowBuilder()

    def _run(self, context: WorkContext, executor: Executor) -> Report:
        predicate = self._predicate.fresh()
        iterations = 0
        try:
            while True:
                report = self._call(self._work, context, executor)
                iterations += 1
                if not predicate(report):
                    break
        except Exception as exc:
            return self._report_fault(exc, context, self._work)
        logger.debug(
            "Repeat flow finished",
            extra={"flow": self.name, "iterations": iterations, "status": report.status.value},
        )
        return report


class RepeatFlowBuilder(FlowBuilder[RepeatFlow]):
    def __init__(self) -> None:
        super().__init__()
        self._work: Work = NoOpWork()
        self._predicate = WorkReportPredicate.ALWAYS_FALSE

    @property
    def predicate(self) -> WorkReportPredicate:
        return self._predicate

    def repeat(self, work: Work) -> RepeatFlowBuilder:
        self._work = work
        return self

    def times(self, times: int) -> RepeatFlowBuilder:
        """Run the unit exactly ``times`` times per invocation."""

        return self.until(WorkReportPredicate.times(times))

    def until(self, predicate: WorkReportPredicate) -> RepeatFlowBuilder:
        self._predicate = predicate
        return self

    def build(self) -> RepeatFlow:
        return RepeatFlow(self._name, self._work, self._predicate, self._context, self._executor)
