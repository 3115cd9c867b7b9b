from __future__ import annotations

import logging
from concurrent.futures import Executor

from flowkit.work.context import WorkContext
from flowkit.work.predicate import WorkReportPredicate
from flowkit.work.report import Report
from flowkit.work.unit import NoOpWork, Work

from .base import AbstractWorkFlow, FlowBuilder

logger = logging.getLogger(__name__)


class ConditionalFlow(AbstractWorkFlow):
    """Run one unit, then exactly one of two follow-ups.

    A conditional flow is defined by:

    - the unit to execute first;
    - a predicate over that unit's report;
    - the unit to execute when the predicate holds;
    - the unit to execute when it does not (optional).

    When no failure branch is configured (it is left as a :class:`NoOpWork`)
    and the predicate does not hold, the first report is returned unchanged.
    A fault at any stage fails the flow without running another branch.
    """

    def __init__(
        self,
        name: str,
        to_execute: Work,
        on_success: Work,
        on_failure: Work,
        predicate: WorkReportPredicate,
        context: WorkContext,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(name, context, executor)
        self._to_execute = to_execute
        self._on_success = on_success
        self._on_failure = on_failure
        self._predicate = predicate

    @property
    def to_execute(self) -> Work:
        return self._to_execute

    @property
    def on_success(self) -> Work:
        return self._on_success

    @property
    def on_failure(self) -> Work:
        return self._on_failure

    @property
    def predicate(self) -> WorkReportPredicate:
        return self._predicate

    @staticmethod
    def builder() -> ConditionalFlowBuilder:
        return ConditionalFlowBuilder()

    def _run(self, context: WorkContext, executor: Executor) -> Report:
        stage = self._to_execute
        try:
            report = self._call(stage, context, executor)
            if self._predicate(report):
                stage = self._on_success
            elif not isinstance(self._on_failure, NoOpWork):
                stage = self._on_failure
            else:
                logger.debug(
                    "Predicate not satisfied and no failure branch configured",
                    extra={"flow": self.name},
                )
                return report
            logger.debug("Taking branch", extra={"flow": self.name, "work": stage.name})
            return self._call(stage, context, executor)
        except Exception as exc:
            return self._report_fault(exc, context, stage)


class ConditionalFlowBuilder(FlowBuilder[ConditionalFlow]):
    def __init__(self) -> None:
        super().__init__()
        self._to_execute: Work = NoOpWork()
        self._on_success: Work = NoOpWork()
        self._on_failure: Work = NoOpWork()
        self._predicate = WorkReportPredicate.ALWAYS_FALSE

    @property
    def predicate(self) -> WorkReportPredicate:
        return self._predicate

    def execute(self, work: Work) -> ConditionalFlowBuilder:
        self._to_execute = work
        return self

    def when(self, predicate: WorkReportPredicate) -> ConditionalFlowBuilder:
        self._predicate = predicate
        return self

    def then(self, work: Work) -> ConditionalFlowBuilder:
        self._on_success = work
        return self

    def otherwise(self, work: Work) -> ConditionalFlowBuilder:
        self._on_failure = work
        return self

    def build(self) -> ConditionalFlow:
        return ConditionalFlow(
            self._name,
            self._to_execute,
            self._on_success,
            self._on_failure,
            self._predicate,
            self._context,
            self._executor,
        )
