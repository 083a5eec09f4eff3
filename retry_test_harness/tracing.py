"""Diagnostic tracing for individual test execution attempts."""

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import assert_never

from retry_test_harness.models.result import (
    ResultMessage,
    TestFailed,
    TestOther,
    TestPassed,
    TestSkipped,
)

log = logging.getLogger(__name__)

MISSING_TEST_NAME = "null"


class TestTracer:
    """Diagnostic context scoped to a single execution attempt.

    The context is initialized before an attempt runs and freed once it
    completes. Trace lines may be recorded from worker threads while the
    attempt is running; outside an active context they are dropped.
    """

    __test__ = False

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lines: list[str] | None = None
        self.correlation_id: str | None = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._lines is not None

    def initialize_context(self) -> None:
        with self._lock:
            self._lines = []
            self.correlation_id = uuid.uuid4().hex
        log.debug("Initialized trace context %s", self.correlation_id)

    def free_context(self) -> None:
        with self._lock:
            correlation_id = self.correlation_id
            self._lines = None
            self.correlation_id = None
        log.debug("Freed trace context %s", correlation_id)

    def trace(self, message: str) -> None:
        """Record a trace line for the current attempt."""
        with self._lock:
            if self._lines is not None:
                self._lines.append(message)

    def get_trace_string(self, kind: str, display_name: str) -> str:
        """Build the trace text for a message of the given kind."""
        with self._lock:
            lines = [f"{kind} {display_name}"]
            if self.correlation_id is not None:
                lines.append(f"Correlation id: {self.correlation_id}")
            lines.extend(self._lines or ())
        return "\n".join(lines) + "\n"


@contextmanager
def execution_scope(tracer: TestTracer) -> Iterator[TestTracer]:
    """Hold an initialized trace context for the duration of one attempt."""
    tracer.initialize_context()
    try:
        yield tracer
    finally:
        tracer.free_context()


def annotate(message: ResultMessage, tracer: TestTracer) -> ResultMessage:
    """Fill in the message output with a trace string, unless already set."""
    if message.output:
        return message

    match message:
        case TestPassed() | TestFailed() | TestSkipped() | TestOther():
            display_name = (
                message.test.display_name
                if message.test is not None
                else MISSING_TEST_NAME
            )
            message.output = tracer.get_trace_string(message.kind, display_name)
        case _:
            assert_never(message)

    return message
