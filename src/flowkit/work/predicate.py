"""Boolean tests over reports, used for branching and looping."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import ClassVar

from .report import Report, WorkStatus


class WorkReportPredicate:
    """A pure ``Report -> bool`` function with boolean combinators."""

    ALWAYS_TRUE: ClassVar[WorkReportPredicate]
    ALWAYS_FALSE: ClassVar[WorkReportPredicate]
    COMPLETED: ClassVar[WorkReportPredicate]
    FAILED: ClassVar[WorkReportPredicate]
    TERMINATED: ClassVar[WorkReportPredicate]

    def __init__(self, fn: Callable[[Report], bool], description: str = "") -> None:
        self._fn = fn
        self.description = description or getattr(fn, "__name__", "predicate")

    def __call__(self, report: Report) -> bool:
        return self.apply(report)

    def apply(self, report: Report) -> bool:
        return bool(self._fn(report))

    def and_(self, other: WorkReportPredicate) -> WorkReportPredicate:
        return _Combined("and", (self, other))

    def or_(self, other: WorkReportPredicate) -> WorkReportPredicate:
        return _Combined("or", (self, other))

    def negate(self) -> WorkReportPredicate:
        return _Combined("not", (self,))

    __and__ = and_
    __or__ = or_
    __invert__ = negate

    def fresh(self) -> WorkReportPredicate:
        """A copy with its own evaluation state.

        Repeat flows call this once per invocation. Stateless predicates
        return themselves.
        """

        return self

    @staticmethod
    def times(times: int) -> TimesPredicate:
        return TimesPredicate(times)

    def __repr__(self) -> str:
        return f"WorkReportPredicate({self.description})"


class _Combined(WorkReportPredicate):
    def __init__(self, op: str, operands: tuple[WorkReportPredicate, ...]) -> None:
        self._op = op
        self._operands = operands
        if op == "not":
            description = f"not {operands[0].description}"
        else:
            description = "(" + f" {op} ".join(p.description for p in operands) + ")"
        super().__init__(self._evaluate, description)

    def _evaluate(self, report: Report) -> bool:
        if self._op == "and":
            return all(p.apply(report) for p in self._operands)
        if self._op == "or":
            return any(p.apply(report) for p in self._operands)
        return not self._operands[0].apply(report)

    def fresh(self) -> WorkReportPredicate:
        operands = tuple(p.fresh() for p in self._operands)
        if all(new is old for new, old in zip(operands, self._operands, strict=True)):
            return self
        return _Combined(self._op, operands)


class TimesPredicate(WorkReportPredicate):
    """True on every evaluation except each ``times``-th one.

    Used as a repeat-flow continuation test it yields exactly ``times``
    executions: the flow evaluates a :meth:`fresh` copy per invocation, so a
    loop cut short by a fault or a cancellation leaves nothing behind.
    Evaluated directly, the count wraps after every ``times``-th call.
    """

    def __init__(self, times: int) -> None:
        if times < 1:
            raise ValueError(f"times must be >= 1, got {times}")
        self._times = times
        self._count = 0
        self._lock = threading.Lock()
        super().__init__(self._tick, f"times({times})")

    @property
    def count(self) -> int:
        """Evaluations since the last wrap."""

        with self._lock:
            return self._count

    def reset(self) -> None:
        with self._lock:
            self._count = 0

    def fresh(self) -> TimesPredicate:
        return TimesPredicate(self._times)

    def _tick(self, _report: Report) -> bool:
        with self._lock:
            self._count += 1
            if self._count == self._times:
                self._count = 0
                return False
            return True


def _status_is(status: WorkStatus) -> WorkReportPredicate:
    return WorkReportPredicate(lambda r: r.status == status, status.value)


WorkReportPredicate.ALWAYS_TRUE = WorkReportPredicate(lambda _r: True, "always_true")
WorkReportPredicate.ALWAYS_FALSE = WorkReportPredicate(lambda _r: False, "always_false")
WorkReportPredicate.COMPLETED = _status_is(WorkStatus.COMPLETED)
WorkReportPredicate.FAILED = _status_is(WorkStatus.FAILED)
WorkReportPredicate.TERMINATED = _status_is(WorkStatus.TERMINATED)
