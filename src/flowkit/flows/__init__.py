"""Composite units of work: sequence, parallel, conditional and repeat."""

from flowkit.flows.base import AbstractWorkFlow, FlowBuilder, FlowConfigurationError
from flowkit.flows.conditional import ConditionalFlow, ConditionalFlowBuilder
from flowkit.flows.parallel import ParallelFlow, ParallelFlowBuilder, ParallelFlowExecutor
from flowkit.flows.repeat import RepeatFlow, RepeatFlowBuilder
from flowkit.flows.sequential import SequentialFlow, SequentialFlowBuilder

__all__ = [
    "AbstractWorkFlow",
    "ConditionalFlow",
    "ConditionalFlowBuilder",
    "FlowBuilder",
    "FlowConfigurationError",
    "ParallelFlow",
    "ParallelFlowBuilder",
    "ParallelFlowExecutor",
    "RepeatFlow",
    "RepeatFlowBuilder",
    "SequentialFlow",
    "SequentialFlowBuilder",
]
