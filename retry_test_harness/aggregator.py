"""Collection of non-test-failure exceptions raised during a run."""

from collections.abc import Callable, Sequence
from typing import Protocol


class ExceptionTracker(Protocol):
    """Reports whether a fatal exception has been recorded for the run."""

    @property
    def has_exceptions(self) -> bool: ...


class ExceptionAggregator:
    """Records exceptions raised by run infrastructure instead of raising them."""

    def __init__(self, parent: "ExceptionAggregator | None" = None) -> None:
        self._exceptions: list[BaseException] = list(
            parent.exceptions if parent is not None else ()
        )

    @property
    def exceptions(self) -> Sequence[BaseException]:
        return tuple(self._exceptions)

    @property
    def has_exceptions(self) -> bool:
        return bool(self._exceptions)

    def add(self, exc: BaseException) -> None:
        self._exceptions.append(exc)

    def clear(self) -> None:
        self._exceptions.clear()

    def run(self, func: Callable[[], object]) -> None:
        """Call func, recording any exception it raises."""
        try:
            func()
        except Exception as exc:
            self.add(exc)

    def to_exception(self) -> BaseException | None:
        """Collapse recorded exceptions into a single exception, if any."""
        if not self._exceptions:
            return None
        if len(self._exceptions) == 1:
            return self._exceptions[0]
        return BaseExceptionGroup(
            "Multiple exceptions were recorded", list(self._exceptions)
        )
