"""Units of work and the values that flow between them."""

from flowkit.work.context import LockedWorkContext, WorkContext
from flowkit.work.handle import WorkHandle
from flowkit.work.interruption import (
    Interruption,
    WorkInterrupted,
    check_interrupted,
    current_interruption,
    is_interrupted,
    sleep,
)
from flowkit.work.predicate import TimesPredicate, WorkReportPredicate
from flowkit.work.report import ParallelFlowReport, Report, WorkReport, WorkStatus
from flowkit.work.unit import FunctionWork, NoOpWork, Work

__all__ = [
    "FunctionWork",
    "Interruption",
    "LockedWorkContext",
    "NoOpWork",
    "ParallelFlowReport",
    "Report",
    "TimesPredicate",
    "Work",
    "WorkContext",
    "WorkHandle",
    "WorkInterrupted",
    "WorkReport",
    "WorkReportPredicate",
    "WorkStatus",
    "check_interrupted",
    "current_interruption",
    "is_interrupted",
    "sleep",
]
