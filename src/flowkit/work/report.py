from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .context import WorkContext


class WorkStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    # Only produced by cancellation.
    TERMINATED = "terminated"


class Report(Protocol):
    """What every unit of work hands back to its caller."""

    @property
    def status(self) -> WorkStatus: ...

    @property
    def context(self) -> WorkContext: ...

    @property
    def error(self) -> BaseException | None: ...


@dataclass(frozen=True, slots=True)
class WorkReport:
    status: WorkStatus
    context: WorkContext
    error: BaseException | None = None

    @classmethod
    def completed(cls, context: WorkContext) -> WorkReport:
        return cls(status=WorkStatus.COMPLETED, context=context)

    @classmethod
    def failed(cls, context: WorkContext, error: BaseException | None = None) -> WorkReport:
        return cls(status=WorkStatus.FAILED, context=context, error=error)

    @classmethod
    def terminated(cls, context: WorkContext, error: BaseException | None = None) -> WorkReport:
        return cls(status=WorkStatus.TERMINATED, context=context, error=error)


class ParallelFlowReport:
    """Aggregate report of a parallel flow.

    Child reports keep the order in which units were submitted, whatever
    order they finished in. ``fault`` is set only when the executor itself
    failed (for example a rejected submission); such a report has no
    children and is FAILED. ``terminated`` marks an aggregate whose flow was
    itself terminated; a TERMINATED child alone does not change the status.
    """

    __slots__ = ("_reports", "_context", "_fault", "_terminated")

    def __init__(
        self,
        reports: Iterable[Report] = (),
        context: WorkContext | None = None,
        fault: BaseException | None = None,
        terminated: bool = False,
    ) -> None:
        self._reports: tuple[Report, ...] = tuple(reports)
        self._context = context if context is not None else WorkContext()
        self._fault = fault
        self._terminated = terminated

    @property
    def reports(self) -> tuple[Report, ...]:
        return self._reports

    @property
    def context(self) -> WorkContext:
        return self._context

    @property
    def fault(self) -> BaseException | None:
        return self._fault

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def status(self) -> WorkStatus:
        if self._fault is not None:
            return WorkStatus.FAILED
        if any(r.status == WorkStatus.FAILED for r in self._reports):
            return WorkStatus.FAILED
        if self._terminated:
            return WorkStatus.TERMINATED
        return WorkStatus.COMPLETED

    @property
    def error(self) -> BaseException | None:
        """The executor fault if any, else the first child error."""

        if self._fault is not None:
            return self._fault
        for report in self._reports:
            if report.error is not None:
                return report.error
        return None

    def __len__(self) -> int:
        return len(self._reports)

    def __iter__(self) -> Iterator[Report]:
        return iter(self._reports)

    def __getitem__(self, index: int) -> Report:
        return self._reports[index]

    def __repr__(self) -> str:
        return (
            f"ParallelFlowReport(status={self.status.value}, "
            f"reports={len(self._reports)}, fault={self._fault!r})"
        )
