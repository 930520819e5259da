#!/usr/bin/env python3
"""
console.py
-------------------
Terminal input and output for health check runs.

ConsoleIO wraps click's echo/style/prompt helpers behind a small set of
block-level methods (section, note, warning, table, ...). Input goes
through an injected reader so interactive runs can be scripted in tests.

Usage:
    io = ConsoleIO()
    io.section("Scan for pages tree integrity")
    answer = io.ask("Handle records [e,s,a,r,p,d,h,?]?", "?")

    # Scripted
    answers = iter(["s", "a"])
    io = ConsoleIO(reader=lambda question, default: next(answers), stream=StringIO())
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Callable, Iterable, List, Optional, Sequence, TextIO, Union

# --- Third party imports ---
import click


Reader = Callable[[str, str], str]
Lines = Union[str, Iterable[str]]


def _prompt_reader(question: str, default: str) -> str:
    """Read one answer from the terminal."""
    return click.prompt(question, default=default, show_default=False)


class ConsoleIO:
    """
    Block-level terminal output plus line input.

    Attributes:
        reader: Callable returning one answer for (question, default)
        stream: Output stream, None for stdout
        color: Force or disable ANSI colors, None lets click decide
    """

    def __init__(
        self,
        reader: Optional[Reader] = None,
        stream: Optional[TextIO] = None,
        color: Optional[bool] = None,
    ) -> None:
        self.reader: Reader = reader or _prompt_reader
        self.stream = stream
        self.color = color

    # ═══════════════════════════════════════════════════════════════════════
    # OUTPUT
    # ═══════════════════════════════════════════════════════════════════════

    def echo(self, message: str = "") -> None:
        click.echo(message, file=self.stream, color=self.color)

    def section(self, title: str) -> None:
        self.echo()
        self.echo(click.style(title, fg="yellow", bold=True))
        self.echo(click.style("=" * len(title), fg="yellow"))
        self.echo()

    def text(self, lines: Lines) -> None:
        for line in self._lines(lines):
            self.echo(f" {line}")

    def note(self, lines: Lines) -> None:
        self._block(lines, "NOTE", "yellow")

    def warning(self, lines: Lines) -> None:
        self._block(lines, "WARNING", "red")

    def success(self, lines: Lines) -> None:
        self._block(lines, "OK", "green")

    def error(self, lines: Lines) -> None:
        self._block(lines, "ERROR", "red")

    def table(self, header: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        """
        Render rows as an aligned plain-text table.

        Args:
            header: Column titles
            rows: Row cell values; short rows are padded with empty cells
        """
        columns = len(header)
        for row in rows:
            columns = max(columns, len(row))
        cells = [self._pad(list(header), columns)]
        cells.extend(self._pad([str(cell) for cell in row], columns) for row in rows)
        widths = [max(len(row[index]) for row in cells) for index in range(columns)]

        separator = " " + "  ".join("-" * width for width in widths)
        self.echo(separator)
        self.echo(" " + "  ".join(
            click.style(value.ljust(width), fg="green") for value, width in zip(cells[0], widths)
        ))
        self.echo(separator)
        for row in cells[1:]:
            self.echo(" " + "  ".join(value.ljust(width) for value, width in zip(row, widths)).rstrip())
        self.echo(separator)
        self.echo()

    # ═══════════════════════════════════════════════════════════════════════
    # INPUT
    # ═══════════════════════════════════════════════════════════════════════

    def ask(self, question: str, default: str = "") -> str:
        """
        Ask a question and return the trimmed answer.

        Args:
            question: Prompt text
            default: Returned when the answer is empty

        Returns:
            Answer string, never None
        """
        answer = self.reader(question, default)
        answer = (answer or "").strip()
        return answer or default

    # ═══════════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════════

    def _block(self, lines: Lines, label: str, color: str) -> None:
        lines = self._lines(lines)
        self.echo()
        for index, line in enumerate(lines):
            prefix = f"[{label}] " if index == 0 else " " * (len(label) + 3)
            self.echo(click.style(f" {prefix}{line}", fg=color))
        self.echo()

    @staticmethod
    def _lines(lines: Lines) -> List[str]:
        if isinstance(lines, str):
            return lines.split("\n")
        result: List[str] = []
        for line in lines:
            result.extend(str(line).split("\n"))
        return result

    @staticmethod
    def _pad(row: List[str], columns: int) -> List[str]:
        return row + [""] * (columns - len(row))
