from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Executor
from typing import cast

from flowkit.work.context import WorkContext
from flowkit.work.report import Report, WorkStatus
from flowkit.work.unit import Work

from .base import AbstractWorkFlow, FlowBuilder, FlowConfigurationError

logger = logging.getLogger(__name__)

_STOP_STATUSES = {WorkStatus.FAILED, WorkStatus.TERMINATED}


class SequentialFlow(AbstractWorkFlow):
    """Runs units one after another, stopping at the first failure.

    Unit ``i + 1`` is submitted only once the report of unit ``i`` is in. A
    FAILED or TERMINATED report ends the flow with that report; units after it
    never start.
    """

    def __init__(
        self,
        name: str,
        works: Sequence[Work],
        context: WorkContext,
        executor: Executor | None = None,
    ) -> None:
        if not works:
            raise FlowConfigurationError(f"Sequential flow '{name}' needs at least one work unit")
        super().__init__(name, context, executor)
        self._works: tuple[Work, ...] = tuple(works)

    @property
    def works(self) -> tuple[Work, ...]:
        return self._works

    @staticmethod
    def builder() -> SequentialFlowBuilder:
        return SequentialFlowBuilder()

    def _run(self, context: WorkContext, executor: Executor) -> Report:
        report: Report | None = None
        for index, work in enumerate(self._works):
            try:
                report = self._call(work, context, executor)
            except Exception as exc:
                return self._report_fault(exc, context, work)
            if report.status in _STOP_STATUSES:
                logger.info(
                    "Work unit did not complete, skipping subsequent work units",
                    extra={
                        "flow": self.name,
                        "work": work.name,
                        "status": report.status.value,
                        "skipped": len(self._works) - index - 1,
                    },
                )
                break
        # The constructor rejects an empty unit list.
        return cast(Report, report)


class SequentialFlowBuilder(FlowBuilder[SequentialFlow]):
    def __init__(self) -> None:
        super().__init__()
        self._works: list[Work] = []

    @property
    def works(self) -> list[Work]:
        return list(self._works)

    def execute(self, work: Work) -> SequentialFlowBuilder:
        self._works.append(work)
        return self

    def then(self, work: Work) -> SequentialFlowBuilder:
        self._works.append(work)
        return self

    def build(self) -> SequentialFlow:
        return SequentialFlow(self._name, self._works, self._context, self._executor)
