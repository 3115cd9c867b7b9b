"""Unit tests for the sequential flow."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from flowkit.flows.base import FlowConfigurationError
from flowkit.flows.sequential import SequentialFlow
from flowkit.work import interruption
from flowkit.work.context import WorkContext
from flowkit.work.report import Report, WorkReport, WorkStatus
from flowkit.work.unit import NoOpWork, Work


class RecordingWork(Work):
    def __init__(
        self,
        name: str,
        log: list[str],
        status: WorkStatus = WorkStatus.COMPLETED,
        sleep: float = 0.0,
        started: threading.Event | None = None,
    ) -> None:
        self._name = name
        self.log = log
        self.status = status
        self.sleep = sleep
        self.started = started

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: WorkContext) -> Report:
        self.log.append(self._name)
        if self.started is not None:
            self.started.set()
        if self.sleep:
            interruption.sleep(self.sleep)
        return WorkReport(status=self.status, context=context)


def test_units_run_in_order(context: WorkContext) -> None:
    log: list[str] = []
    flow = (
        SequentialFlow.builder()
        .named("testFlow")
        .execute(RecordingWork("w1", log))
        .then(RecordingWork("w2", log))
        .then(RecordingWork("w3", log))
        .with_context(context)
        .build()
    )

    report = flow.execute()

    assert log == ["w1", "w2", "w3"]
    assert report.status == WorkStatus.COMPLETED
    assert report.context is context
    assert flow.name == "testFlow"


@pytest.mark.parametrize("failing", [1, 2, 3])
def test_first_failure_stops_the_flow(context: WorkContext, failing: int) -> None:
    log: list[str] = []
    works = [
        RecordingWork(
            f"w{i}", log, status=WorkStatus.FAILED if i == failing else WorkStatus.COMPLETED
        )
        for i in range(1, 4)
    ]
    reports: list[Report] = []

    class Capture(Work):
        def __init__(self, inner: RecordingWork) -> None:
            self.inner = inner

        @property
        def name(self) -> str:
            return self.inner.name

        def execute(self, ctx: WorkContext) -> Report:
            report = self.inner.execute(ctx)
            reports.append(report)
            return report

    builder = SequentialFlow.builder().with_context(context)
    for work in works:
        builder.then(Capture(work))
    report = builder.build().execute()

    assert log == [f"w{i}" for i in range(1, failing + 1)]
    assert report.status == WorkStatus.FAILED
    assert report is reports[failing - 1]


def test_unit_fault_fails_the_flow_with_its_cause(context: WorkContext) -> None:
    error = RuntimeError("boom")
    broken = Mock(spec=Work)
    broken.name = "broken"
    broken.execute.side_effect = error
    after = Mock(spec=Work)
    after.name = "after"

    report = SequentialFlow.builder().execute(broken).then(after).build().execute(context)

    assert report.status == WorkStatus.FAILED
    assert report.error is error
    assert report.context is context
    after.execute.assert_not_called()


def test_terminate_while_unit_is_sleeping() -> None:
    log: list[str] = []
    started = threading.Event()
    flow = (
        SequentialFlow.builder()
        .named("testFlow")
        .execute(RecordingWork("w1", log, sleep=5, started=started))
        .then(RecordingWork("w2", log))
        .then(RecordingWork("w3", log))
        .build()
    )
    result: dict[str, Report] = {}
    runner = threading.Thread(target=lambda: result.setdefault("report", flow.execute()))
    runner.start()

    assert started.wait(5)
    flow.terminate(True)
    runner.join(5)

    assert not runner.is_alive()
    assert result["report"].status == WorkStatus.TERMINATED
    assert log == ["w1"]
    assert len(flow.handles) == 1
    assert flow.handles[0].cancelled()


def test_terminate_without_interrupt_lets_the_running_unit_finish() -> None:
    log: list[str] = []
    started = threading.Event()
    flow = (
        SequentialFlow.builder()
        .execute(RecordingWork("w1", log, sleep=0.2, started=started))
        .then(RecordingWork("w2", log))
        .build()
    )
    result: dict[str, Report] = {}
    runner = threading.Thread(target=lambda: result.setdefault("report", flow.execute()))
    runner.start()

    assert started.wait(5)
    flow.terminate(False)
    runner.join(5)

    first, second = flow.handles
    assert result["report"].status == WorkStatus.TERMINATED
    assert log == ["w1"]
    assert not first.cancelled()
    assert first.result().status == WorkStatus.COMPLETED
    assert second.cancelled()


def test_system_exit_from_a_unit_is_not_converted(context: WorkContext) -> None:
    work = Mock(spec=Work)
    work.name = "exits"
    work.execute.side_effect = SystemExit(3)
    flow = SequentialFlow.builder().execute(work).build()

    with pytest.raises(SystemExit):
        flow.execute(context)


def test_empty_flow_is_rejected_at_build_time() -> None:
    with pytest.raises(FlowConfigurationError):
        SequentialFlow.builder().named("empty").build()


def test_injected_executor_is_used_and_left_running(
    executor: ThreadPoolExecutor, context: WorkContext
) -> None:
    threads: list[str] = []

    class ThreadName(NoOpWork):
        def execute(self, ctx: WorkContext) -> WorkReport:
            threads.append(threading.current_thread().name)
            return super().execute(ctx)

    flow = SequentialFlow.builder().execute(ThreadName()).with_executor(executor).build()

    assert flow.execute(context).status == WorkStatus.COMPLETED
    assert threads[0].startswith("flowkit-test")
    # Still usable: the flow must not shut down a caller-owned executor.
    assert executor.submit(lambda: 42).result(timeout=5) == 42


def test_executor_fault_fails_the_flow(context: WorkContext) -> None:
    pool = ThreadPoolExecutor(max_workers=1)
    pool.shutdown()
    flow = SequentialFlow.builder().execute(NoOpWork()).with_executor(pool).build()

    report = flow.execute(context)

    assert report.status == WorkStatus.FAILED
    assert isinstance(report.error, RuntimeError)


def test_with_context_binds_a_copy(context: WorkContext) -> None:
    log: list[str] = []
    flow = SequentialFlow.builder().execute(RecordingWork("w1", log)).build()
    bound = flow.with_context(context)

    assert bound is not flow
    assert bound.context is context
    assert flow.context is not context
    assert bound.execute().context is context
