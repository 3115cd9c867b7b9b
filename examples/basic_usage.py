#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates composing flows directly:

* load settings from `.env` / `FLOWKIT_*` environment variables
* build a sequential flow nested inside a conditional one
* fan out with a parallel flow on the engine's shared pool
* repeat a flaky step until it stops failing
"""

from __future__ import annotations

import argparse
import random
from typing import Sequence

from flowkit import (
    ConditionalFlow,
    EngineSettings,
    FunctionWork,
    ParallelFlow,
    RepeatFlow,
    SequentialFlow,
    WorkContext,
    WorkFlowEngine,
    WorkReport,
    WorkReportPredicate,
)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a small composed workflow.")
    parser.add_argument("--words", default="hello,world,flows", help="Comma-separated words")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the flaky step")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = EngineSettings()
    settings.setup_logging()
    rng = random.Random(args.seed)

    def load(ctx: WorkContext) -> None:
        ctx["words"] = [w for w in args.words.split(",") if w]

    def count(ctx: WorkContext) -> None:
        ctx["count"] = len(ctx["words"])

    def shout(ctx: WorkContext) -> None:
        ctx["shouted"] = [w.upper() for w in ctx["words"]]

    def measure(ctx: WorkContext) -> None:
        ctx["longest"] = max(ctx["words"], key=len)

    def flaky(ctx: WorkContext) -> WorkReport:
        ctx["attempts"] = ctx.get("attempts", 0) + 1
        if rng.random() < 0.5:
            return WorkReport.failed(ctx)
        return WorkReport.completed(ctx)

    with WorkFlowEngine(settings) as engine:
        prepare = (
            SequentialFlow.builder()
            .named("prepare")
            .execute(FunctionWork(load))
            .then(FunctionWork(count))
            .build()
        )
        fan_out = (
            ParallelFlow.builder(engine.executor)
            .named("fan-out")
            .execute(FunctionWork(shout), FunctionWork(measure))
            .build()
        )
        workflow = (
            SequentialFlow.builder()
            .named("example")
            .execute(
                ConditionalFlow.builder()
                .named("guard")
                .execute(prepare)
                .when(WorkReportPredicate.COMPLETED)
                .then(fan_out)
                .build()
            )
            .then(
                RepeatFlow.builder()
                .named("retry-flaky")
                .repeat(FunctionWork(flaky))
                .until(WorkReportPredicate.FAILED)
                .build()
            )
            .build()
        )

        context = WorkContext()
        report = engine.run(workflow, context)

    print(f"status={report.status.value}")
    for key in sorted(context):
        print(f"{key}={context[key]!r}")
    return 0 if report.status.value == "completed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
