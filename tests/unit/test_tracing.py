"""Tests for trace context and message annotation."""

import pytest

from retry_test_harness.models.result import TestCase, TestFailed, TestOther, TestPassed
from retry_test_harness.testing.factories import TestFailedFactory, TestPassedFactory
from retry_test_harness.tracing import TestTracer, annotate, execution_scope


def test_annotate_sets_trace_string_when_output_empty() -> None:
    """Fills empty output with the message kind and test display name."""
    message = TestPassed(test=TestCase(display_name="Foo.Bar/passes"))

    annotate(message, TestTracer())

    assert message.output.startswith("TestPassed Foo.Bar/passes")


def test_annotate_uses_placeholder_without_test() -> None:
    """Uses a placeholder name when no test is associated."""
    message = TestFailed(test=None)

    annotate(message, TestTracer())

    assert message.output.startswith("TestFailed null")


def test_annotate_uses_name_of_other_messages() -> None:
    """Non-terminal messages are annotated with their own kind name."""
    message = TestOther(name="TestStarting", test=TestCase(display_name="a"))

    annotate(message, TestTracer())

    assert message.output.startswith("TestStarting a")


def test_annotate_keeps_existing_output() -> None:
    """Never overwrites output that is already set."""
    message = TestFailedFactory.build(output="captured output")

    annotate(message, TestTracer())
    annotate(message, TestTracer())

    assert message.output == "captured output"


def test_annotate_is_idempotent() -> None:
    """Annotating twice leaves the first trace string in place."""
    tracer = TestTracer()
    message = TestPassedFactory.build()

    with execution_scope(tracer):
        annotate(message, tracer)
        first = message.output
        tracer.trace("later line")
        annotate(message, tracer)

    assert message.output == first


def test_trace_string_includes_recorded_lines() -> None:
    """Lines traced during the attempt appear in the trace string."""
    tracer = TestTracer()

    with execution_scope(tracer):
        tracer.trace("connecting")
        tracer.trace("connected")
        text = tracer.get_trace_string("TestFailed", "Foo")

    assert text.splitlines()[0] == "TestFailed Foo"
    assert text.splitlines()[-2:] == ["connecting", "connected"]


def test_trace_outside_context_is_dropped() -> None:
    """Trace lines recorded outside an attempt are discarded."""
    tracer = TestTracer()

    tracer.trace("ignored")

    assert tracer.get_trace_string("TestPassed", "Foo") == "TestPassed Foo\n"


class TestExecutionScope:
    """Tests for execution_scope."""

    def test_initializes_and_frees_context(self) -> None:
        """Context is active only inside the scope."""
        tracer = TestTracer()

        with execution_scope(tracer) as scoped:
            assert scoped is tracer
            assert tracer.active
            assert tracer.correlation_id is not None

        assert not tracer.active
        assert tracer.correlation_id is None

    def test_frees_context_on_exception(self) -> None:
        """Context is released when the attempt raises."""
        tracer = TestTracer()

        with pytest.raises(ValueError, match="boom"), execution_scope(tracer):
            raise ValueError("boom")

        assert not tracer.active

    def test_each_scope_gets_fresh_context(self) -> None:
        """Trace lines do not leak between attempts."""
        tracer = TestTracer()

        with execution_scope(tracer):
            tracer.trace("first attempt")
            first_id = tracer.correlation_id

        with execution_scope(tracer):
            text = tracer.get_trace_string("TestPassed", "Foo")
            assert tracer.correlation_id != first_id

        assert "first attempt" not in text
