"""Message sinks that route result messages from a running test."""

import logging
import threading
from typing import Protocol, assert_never

from retry_test_harness.models.result import (
    ResultMessage,
    TestFailed,
    TestOther,
    TestPassed,
    TestSkipped,
)
from retry_test_harness.tracing import MISSING_TEST_NAME, TestTracer, annotate

log = logging.getLogger(__name__)


class ChannelFlushedError(RuntimeError):
    """Raised when a delayed sink is flushed more than once."""


class MessageSink(Protocol):
    """Anything that accepts result messages."""

    def submit(self, message: ResultMessage) -> bool:
        """Accept a message; return False to ask the sender to stop."""
        ...

    def close(self) -> None:
        """Release the sink."""
        ...


class TraceMessageSink:
    """Annotates messages and forwards them straight to the inner sink."""

    def __init__(self, inner: MessageSink, tracer: TestTracer) -> None:
        self._inner = inner
        self._tracer = tracer

    def submit(self, message: ResultMessage) -> bool:
        return self._inner.submit(annotate(message, self._tracer))

    def close(self) -> None:
        self._inner.close()


def failure_reason(failed: TestFailed) -> str:
    """Describe a failure as exception types, then messages, then stack traces."""
    return "".join(
        "\n".join(part) + "\n"
        for part in (failed.exception_types, failed.messages, failed.stack_traces)
    )


class DelayedMessageSink:
    """Buffers messages until the final outcome of a test is known.

    The inner sink is owned by the caller, so closing this sink does nothing.
    A delayed sink is single-use: it is flushed exactly once, and messages
    submitted after the flush are dropped.
    """

    def __init__(self, inner: MessageSink, tracer: TestTracer) -> None:
        self._inner = inner
        self._tracer = tracer
        self._lock = threading.Lock()
        self._messages: list[ResultMessage] = []
        self._flushed = False

    def submit(self, message: ResultMessage) -> bool:
        annotate(message, self._tracer)
        with self._lock:
            flushed = self._flushed
            if not flushed:
                self._messages.append(message)

        if flushed:
            log.debug("Dropping %s reported after flush", message.kind)

        # The inner sink cannot be asked whether to stop without handing it
        # the message, so the sender is always told to continue.
        return True

    def close(self) -> None:
        pass

    def flush(self, retry_succeeded: bool) -> None:
        """Forward buffered messages in order, turning failures into skips
        when the retry succeeded."""
        with self._lock:
            if self._flushed:
                raise ChannelFlushedError("Message sink has already been flushed")
            self._flushed = True
            messages = self._messages

        log.debug(
            "Flushing %d buffered message(s) (retry_succeeded=%s)",
            len(messages),
            retry_succeeded,
        )
        for message in messages:
            self._inner.submit(self._finalize(message, retry_succeeded))

    def _finalize(
        self, message: ResultMessage, retry_succeeded: bool
    ) -> ResultMessage:
        match message:
            case TestFailed() if retry_succeeded:
                name = (
                    message.test.display_name if message.test else MISSING_TEST_NAME
                )
                log.info("Reporting flaky failure of %s as skipped", name)
                return TestSkipped(
                    test=message.test,
                    reason=failure_reason(message),
                    output=message.output,
                )
            case TestPassed() | TestFailed() | TestSkipped() | TestOther():
                return message
            case _:
                assert_never(message)
