"""Retrying execution of a single test."""

import logging
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from retry_test_harness.aggregator import ExceptionTracker
from retry_test_harness.channels import (
    DelayedMessageSink,
    MessageSink,
    TraceMessageSink,
)
from retry_test_harness.crash_log import write_crash_log
from retry_test_harness.models.config import RetryConfig
from retry_test_harness.models.result import RunSummary, TestCase
from retry_test_harness.tracing import TestTracer, execution_scope

log = logging.getLogger(__name__)


class TestRunner(Protocol):
    """Host-supplied runner for one test case."""

    @property
    def test(self) -> TestCase: ...

    def set_message_sink(self, sink: MessageSink) -> None:
        """Route the messages of subsequent runs to sink."""
        ...

    async def run(self, tracer: TestTracer) -> RunSummary:
        """Execute the test once, reporting through the current sink."""
        ...


@dataclass(frozen=True, kw_only=True)
class RetryOrchestrator:
    """Runs a test a second time when it fails and reconciles the results.

    A failure followed by a passing retry is reported as skipped, with the
    original failure details as the skip reason. A failure that repeats is
    reported as the first attempt's messages, unchanged.

    Every attempt runs with its own tracer from tracer_factory, so concurrent
    calls on one orchestrator do not share trace state.
    """

    config: RetryConfig = field(default_factory=RetryConfig)
    tracer_factory: Callable[[], TestTracer] = TestTracer

    async def run_with_retry(
        self,
        runner: TestRunner,
        message_sink: MessageSink,
        aggregator: ExceptionTracker,
        disable_retry: bool | None = None,
    ) -> RunSummary:
        """Run the test, retrying once on failure.

        Args:
            runner: Runner for the test case
            message_sink: Downstream sink owned by the caller
            aggregator: Tracker of fatal exceptions for the broader run;
                recorded exceptions are never masked by a retry
            disable_retry: Run once without buffering; defaults to the config

        Returns:
            Summary of the attempt whose outcome was reported

        """
        if disable_retry is None:
            disable_retry = self.config.disable_retry

        try:
            delayed_sink: DelayedMessageSink | None = None

            if not disable_retry:
                tracer = self.tracer_factory()
                delayed_sink = DelayedMessageSink(message_sink, tracer)
                runner.set_message_sink(delayed_sink)
                summary = await self._run_once(runner, tracer)

                if summary.failed == 0 or aggregator.has_exceptions:
                    delayed_sink.flush(retry_succeeded=False)
                    return summary

                log.info(
                    "Test %s failed (%d failure(s)), retrying",
                    runner.test.display_name,
                    summary.failed,
                )

            tracer = self.tracer_factory()
            runner.set_message_sink(TraceMessageSink(message_sink, tracer))
            summary = await self._run_once(runner, tracer)

            if delayed_sink is not None:
                retry_succeeded = summary.failed == 0 and not aggregator.has_exceptions
                if retry_succeeded:
                    log.info(
                        "Test %s passed on retry, suppressing first failure",
                        runner.test.display_name,
                    )
                delayed_sink.flush(retry_succeeded=retry_succeeded)

            return summary
        except Exception as exc:
            log.error(
                "Catastrophic failure running %s",
                runner.test.display_name,
                exc_info=exc,
            )
            write_crash_log(
                self.config.log_dir,
                "".join(traceback.format_exception(exc)),
            )
            raise
        finally:
            runner.set_message_sink(message_sink)

    async def _run_once(self, runner: TestRunner, tracer: TestTracer) -> RunSummary:
        with execution_scope(tracer):
            return await runner.run(tracer)
