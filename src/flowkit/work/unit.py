"""The unit-of-work contract shared by leaf work and flows."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable

from .context import WorkContext
from .report import Report, WorkReport


class Work(ABC):
    """Abstract base class for anything a flow can execute.

    Flows implement this contract too, which is what lets a flow be nested
    inside another flow without special handling.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Diagnostic name. Not required to be unique."""

    @abstractmethod
    def execute(self, context: WorkContext) -> Report:
        """Run the unit against ``context``.

        Args:
            context: Shared context of the current invocation.

        Returns:
            The outcome of the run.

        Raises:
            Exception: Any fault of the unit. Flows turn it into a FAILED report.
        """

    def with_context(self, context: WorkContext) -> Work:
        """Return an equivalent unit bound to ``context``.

        Leaf units receive their context on every ``execute`` call and are
        returned unchanged.
        """

        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class NoOpWork(Work):
    """Completes immediately. Placeholder for optional builder slots."""

    def __init__(self, name: str | None = None) -> None:
        self._name = name or str(uuid.uuid4())

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: WorkContext) -> WorkReport:
        return WorkReport.completed(context)


class FunctionWork(Work):
    """Adapt a plain callable into a unit of work.

    ``fn`` receives the context and may return a report; returning ``None``
    means the unit completed.
    """

    def __init__(
        self, fn: Callable[[WorkContext], Report | None], name: str | None = None
    ) -> None:
        self._fn = fn
        self._name = name or getattr(fn, "__name__", None) or str(uuid.uuid4())

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: WorkContext) -> Report:
        report = self._fn(context)
        if report is None:
            return WorkReport.completed(context)
        return report
