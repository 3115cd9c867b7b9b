"""flowkit.

A small workflow-composition engine:
- units of work with a shared execution context
- sequential, parallel, conditional and repeat flows, each itself a unit
- report predicates for branching and looping
- cooperative cancellation that reaches nested flows
"""

__version__ = "0.1.0"

from flowkit.config import EngineSettings
from flowkit.engine import WorkFlowEngine
from flowkit.flows import (
    ConditionalFlow,
    FlowConfigurationError,
    ParallelFlow,
    ParallelFlowExecutor,
    RepeatFlow,
    SequentialFlow,
)
from flowkit.work import (
    FunctionWork,
    LockedWorkContext,
    NoOpWork,
    ParallelFlowReport,
    Report,
    Work,
    WorkContext,
    WorkHandle,
    WorkInterrupted,
    WorkReport,
    WorkReportPredicate,
    WorkStatus,
)

__all__ = [
    "__version__",
    "ConditionalFlow",
    "EngineSettings",
    "FlowConfigurationError",
    "FunctionWork",
    "LockedWorkContext",
    "NoOpWork",
    "ParallelFlow",
    "ParallelFlowExecutor",
    "ParallelFlowReport",
    "RepeatFlow",
    "Report",
    "SequentialFlow",
    "Work",
    "WorkContext",
    "WorkFlowEngine",
    "WorkHandle",
    "WorkInterrupted",
    "WorkReport",
    "WorkReportPredicate",
    "WorkStatus",
]
