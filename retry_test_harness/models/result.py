"""Models for test result messages and run summaries."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True, kw_only=True)
class TestCase:
    """Handle to a single test case owned by the execution host."""

    __test__ = False

    display_name: str


@dataclass(kw_only=True)
class TestPassed:
    """A test attempt that passed."""

    __test__ = False

    test: TestCase | None
    output: str = ""

    @property
    def kind(self) -> str:
        return "TestPassed"


@dataclass(kw_only=True)
class TestFailed:
    """A test attempt that failed.

    The three sequences are parallel: one entry per exception in the chain,
    outermost first.
    """

    __test__ = False

    test: TestCase | None
    exception_types: Sequence[str] = field(default_factory=list)
    messages: Sequence[str] = field(default_factory=list)
    stack_traces: Sequence[str] = field(default_factory=list)
    output: str = ""

    @property
    def kind(self) -> str:
        return "TestFailed"


@dataclass(kw_only=True)
class TestSkipped:
    """A test attempt that was skipped."""

    __test__ = False

    test: TestCase | None
    reason: str
    output: str = ""

    @property
    def kind(self) -> str:
        return "TestSkipped"


@dataclass(kw_only=True)
class TestOther:
    """Any non-terminal message reported during execution (e.g. TestStarting)."""

    __test__ = False

    name: str
    test: TestCase | None = None
    output: str = ""

    @property
    def kind(self) -> str:
        return self.name


ResultMessage: TypeAlias = TestPassed | TestFailed | TestSkipped | TestOther


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Counts produced by one execution attempt."""

    total: int = 0
    failed: int = 0
    skipped: int = 0
    time: float = 0.0
