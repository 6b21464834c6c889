"""Run-scoped diagnostic trace for the resolution pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterator, Protocol


class LogSink(Protocol):
    def append(self, line: str) -> None:
        """Receive one timestamped trace line."""


class ListSink:
    """Collects trace lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def append(self, line: str) -> None:
        self.lines.append(line)


class PrintSink:
    """Echoes trace lines through a callable (``print`` or ``typer.echo``)."""

    def __init__(self, echo: Callable[[str], object] = print) -> None:
        self._echo = echo

    def append(self, line: str) -> None:
        self._echo(line)


def _now() -> str:
    return datetime.now().strftime("%H:%M:%S")


class PipelineTrace:
    """Append-only sequence of ``[HH:MM:SS] message`` lines for one run.

    Each line is forwarded to *sink* as it is written so a caller can show
    progress live.
    """

    def __init__(
        self,
        sink: LogSink | None = None,
        clock: Callable[[], str] = _now,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._lines: list[str] = []

    def log(self, message: str = "") -> str:
        line = f"[{self._clock()}] {message}"
        self._lines.append(line)
        if self._sink is not None:
            self._sink.append(line)
        return line

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._lines))

    def __len__(self) -> int:
        return len(self._lines)
