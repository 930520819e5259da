"""Tests for ConsoleIO output blocks and scripted input."""
from io import StringIO

from dbdoctor.core.console import ConsoleIO


def _console(answers=()):
    pending = list(answers)
    return ConsoleIO(reader=lambda question, default: pending.pop(0), stream=StringIO(), color=False)


class TestOutput:
    """Tests for block output."""

    def test_section_underlines_title(self):
        """section() should print the title underlined with '='."""
        io = _console()
        io.section("Scan pages")
        assert "Scan pages\n==========" in io.stream.getvalue()

    def test_note_prefixes_first_line_only(self):
        """Multi-line blocks should label the first line and indent the rest."""
        io = _console()
        io.note(["first", "second"])
        lines = [line for line in io.stream.getvalue().splitlines() if line]
        assert lines[0] == " [NOTE] first"
        assert lines[1] == " " * 8 + "second"

    def test_warning_and_success_labels(self):
        """warning() and success() should use their own labels."""
        io = _console()
        io.warning("broken")
        io.success("fine")
        output = io.stream.getvalue()
        assert "[WARNING] broken" in output
        assert "[OK] fine" in output

    def test_table_aligns_columns(self):
        """table() should pad cells to the widest value per column."""
        io = _console()
        io.table(["uid", "title"], [[1, "Home"], [12, "A longer title"]])
        lines = io.stream.getvalue().splitlines()
        assert " uid  title" in [line.rstrip() for line in lines]
        assert " 1    Home" in lines
        assert " 12   A longer title" in lines

    def test_table_pads_short_rows(self):
        """Rows shorter than the widest row should get empty cells."""
        io = _console()
        io.table(["records"], [["2", "[0]Root", "[1]Home"], ["1"]])
        output = io.stream.getvalue()
        assert "[1]Home" in output
        assert " 1\n" in output


class TestInput:
    """Tests for ask()."""

    def test_answer_is_stripped(self):
        """ask() should trim whitespace from answers."""
        io = _console(["  e  "])
        assert io.ask("Handle?", "?") == "e"

    def test_empty_answer_returns_default(self):
        """ask() should return the default for an empty answer."""
        io = _console([""])
        assert io.ask("Handle?", "?") == "?"
