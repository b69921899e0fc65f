"""
Tests for in-place file rewriting.

Failures are injected at each stage to check that the original file is
never damaged and that no temporary file is left behind.
"""

import errno
import io
import os
import stat
import tempfile

import pytest
from rich.console import Console

from textreplace.config import ProcessingOptions
from textreplace.core.errors import FileProcessingError, WriteError
from textreplace.core.files import TEMP_PREFIX, backup_path_for, replace_in_file
from textreplace.core.pairs import PatternTable


@pytest.fixture
def table():
    return PatternTable.from_tokens(["foo", "bar", "ab", "X", "a", "Y"])


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=200)


class FailingTemporaryFile:
    """Wraps a real temporary file and fails after a number of writes."""

    def __init__(self, real, accept: int):
        self.real = real
        self.accept = accept
        self.writes = 0

    def write(self, text):
        if self.writes >= self.accept:
            raise OSError(errno.ENOSPC, "No space left on device")
        self.writes += 1
        return self.real.write(text)

    def __getattr__(self, name):
        return getattr(self.real, name)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.real.close()
        return False


class TestReplaceInFile:
    """Successful rewrites."""

    def test_rewrites_file(self, tmp_path, table, quiet_console):
        target = tmp_path / "input.txt"
        target.write_text("foo abc\nnothing\nlast a", encoding="utf-8")

        stats = replace_in_file(target, table, diagnostics=quiet_console)

        assert target.read_text(encoding="utf-8") == "bar Xc\nnothing\nlYst Y"
        assert stats.lines == 3
        assert stats.changed_lines == 2

    def test_no_temporary_file_left(self, tmp_path, table, quiet_console):
        target = tmp_path / "input.txt"
        target.write_text("foo\n", encoding="utf-8")

        replace_in_file(target, table, diagnostics=quiet_console)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["input.txt"]

    def test_crlf_bytes_preserved(self, tmp_path, table, quiet_console):
        target = tmp_path / "dos.txt"
        target.write_bytes(b"foo\r\nkeep\r\n")

        replace_in_file(target, table, diagnostics=quiet_console)

        assert target.read_bytes() == b"bar\r\nkeep\r\n"

    def test_lone_carriage_return_stays_in_line(self, tmp_path, quiet_console):
        """Only newline ends a line; a pattern may span a bare carriage return."""
        target = tmp_path / "mac.txt"
        target.write_bytes(b"a\rb\nkeep\ra\n")
        table = PatternTable.from_tokens(["a\rb", "X"])

        stats = replace_in_file(target, table, diagnostics=quiet_console)

        assert target.read_bytes() == b"X\nkeep\ra\n"
        assert stats.lines == 2

    def test_undecodable_bytes_survive(self, tmp_path, table, quiet_console):
        """Bytes that are not valid UTF-8 pass through unchanged."""
        target = tmp_path / "binaryish.txt"
        target.write_bytes(b"\xff foo \xfe\n")

        replace_in_file(target, table, diagnostics=quiet_console)

        assert target.read_bytes() == b"\xff bar \xfe\n"

    def test_other_encoding(self, tmp_path, quiet_console):
        target = tmp_path / "latin.txt"
        target.write_bytes("café\n".encode("latin-1"))
        table = PatternTable.from_tokens(["é", "e"])

        replace_in_file(target, table, encoding="latin-1", errors="strict", diagnostics=quiet_console)

        assert target.read_bytes() == b"cafe\n"

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_permissions_preserved(self, tmp_path, table, quiet_console):
        target = tmp_path / "script.sh"
        target.write_text("echo foo\n", encoding="utf-8")
        target.chmod(0o755)

        replace_in_file(target, table, diagnostics=quiet_console)

        assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_backup_copy(self, tmp_path, table, quiet_console):
        target = tmp_path / "input.txt"
        target.write_text("foo\n", encoding="utf-8")

        replace_in_file(target, table, backup_suffix=".orig", diagnostics=quiet_console)

        assert target.read_text(encoding="utf-8") == "bar\n"
        assert backup_path_for(target, ".orig").read_text(encoding="utf-8") == "foo\n"

    def test_verbose_reports_conversion(self, tmp_path, table):
        diagnostics = io.StringIO()
        target = tmp_path / "input.txt"
        target.write_text("foo\n", encoding="utf-8")

        replace_in_file(
            target, table, ProcessingOptions(verbose=True),
            diagnostics=Console(file=diagnostics, width=200)
        )

        assert f"{target} converted" in diagnostics.getvalue()
        assert "Replaced in line: bar" in diagnostics.getvalue()

    def test_silent_suppresses_conversion_message(self, tmp_path, table):
        diagnostics = io.StringIO()
        target = tmp_path / "input.txt"
        target.write_text("foo\n", encoding="utf-8")

        replace_in_file(
            target, table, ProcessingOptions(verbose=True, silent=True),
            diagnostics=Console(file=diagnostics, width=200)
        )

        assert "converted" not in diagnostics.getvalue()


class TestAtomicUpdate:
    """The original survives every kind of failure."""

    def test_missing_file(self, tmp_path, table, quiet_console):
        with pytest.raises(FileProcessingError) as exc_info:
            replace_in_file(tmp_path / "missing.txt", table, diagnostics=quiet_console)

        assert exc_info.value.stage == "open"
        assert "missing.txt" in exc_info.value.message
        assert list(tmp_path.iterdir()) == []

    def test_write_failure_mid_file(self, tmp_path, table, quiet_console, monkeypatch):
        """An injected write failure leaves the original byte-identical."""
        target = tmp_path / "input.txt"
        original = b"foo 1\nfoo 2\nfoo 3\n"
        target.write_bytes(original)

        real_temporary_file = tempfile.NamedTemporaryFile

        def failing_temporary_file(*args, **kwargs):
            return FailingTemporaryFile(real_temporary_file(*args, **kwargs), accept=1)

        monkeypatch.setattr(tempfile, "NamedTemporaryFile", failing_temporary_file)

        with pytest.raises(WriteError) as exc_info:
            replace_in_file(target, table, diagnostics=quiet_console)

        assert exc_info.value.path == str(target)
        assert target.read_bytes() == original
        assert sorted(p.name for p in tmp_path.iterdir()) == ["input.txt"]

    def test_rename_failure(self, tmp_path, table, quiet_console, monkeypatch):
        target = tmp_path / "input.txt"
        target.write_text("foo\n", encoding="utf-8")

        def refuse(src, dst):
            raise OSError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(os, "replace", refuse)

        with pytest.raises(FileProcessingError) as exc_info:
            replace_in_file(target, table, diagnostics=quiet_console)

        assert exc_info.value.stage == "rename"
        assert target.read_text(encoding="utf-8") == "foo\n"
        assert not any(p.name.startswith(TEMP_PREFIX) for p in tmp_path.iterdir())

    def test_decode_failure_with_strict_errors(self, tmp_path, table, quiet_console):
        target = tmp_path / "input.txt"
        original = b"foo\n\xff\n"
        target.write_bytes(original)

        with pytest.raises(FileProcessingError) as exc_info:
            replace_in_file(target, table, errors="strict", diagnostics=quiet_console)

        assert exc_info.value.stage == "read"
        assert target.read_bytes() == original
        assert sorted(p.name for p in tmp_path.iterdir()) == ["input.txt"]

    def test_unencodable_replacement(self, tmp_path, quiet_console):
        """A target the file encoding can't represent fails cleanly."""
        target = tmp_path / "ascii.txt"
        target.write_bytes(b"x\n")
        table = PatternTable.from_tokens(["x", "☃"])

        with pytest.raises(WriteError):
            replace_in_file(target, table, encoding="ascii", errors="strict", diagnostics=quiet_console)

        assert target.read_bytes() == b"x\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ascii.txt"]

    def test_interrupt_removes_temporary_file(self, tmp_path, table, quiet_console, monkeypatch):
        """Cancellation mid-file leaves only the untouched original."""
        target = tmp_path / "input.txt"
        target.write_text("foo\nfoo\n", encoding="utf-8")

        def interrupted(self, source, sink, name=None):
            sink.write("partial")
            raise KeyboardInterrupt

        monkeypatch.setattr("textreplace.core.files.LineProcessor.run", interrupted)

        with pytest.raises(KeyboardInterrupt):
            replace_in_file(target, table, diagnostics=quiet_console)

        assert target.read_text(encoding="utf-8") == "foo\nfoo\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["input.txt"]
