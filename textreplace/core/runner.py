"""
Run orchestration: standard streams or a list of files.

Files are processed independently. A failure on one file is reported and
recorded, the remaining files are still processed, and the exit code tells
whether anything failed.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from rich.console import Console

from ..config import ProcessingOptions
from .errors import ReplaceError, WriteError
from .files import replace_in_file
from .pairs import PatternTable
from .processor import TERMINATOR, LineProcessor, StreamStats

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FAILURE = 2


@dataclass
class FileOutcome:
    """Result of processing one file."""
    path: Path
    stats: Optional[StreamStats] = None
    error: Optional[ReplaceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregate over all files of a run."""
    outcomes: List[FileOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def exit_code(self) -> int:
        return EXIT_FAILURE if self.failed else EXIT_OK


def _unique_paths(paths: Sequence[Union[str, Path]]) -> List[Path]:
    """Drop repeated paths, keeping first-seen order."""
    seen = set()
    unique = []
    for p in paths:
        path = Path(p)
        key = path.resolve()
        if key in seen:
            logger.debug(f"Skipping repeated path {path}")
            continue
        seen.add(key)
        unique.append(path)
    return unique


class ReplaceRunner:
    """Applies one pattern table to standard streams or to files."""

    def __init__(self,
                 table: PatternTable,
                 options: Optional[ProcessingOptions] = None,
                 *,
                 encoding: str = "utf-8",
                 errors: str = "surrogateescape",
                 backup_suffix: Optional[str] = None,
                 jobs: int = 1,
                 console: Optional[Console] = None):
        """
        Initialize runner.

        Args:
            table: Pattern table shared by every processor
            options: Silent/verbose flags
            encoding: Text encoding for files and standard streams
            errors: Codec error handler
            backup_suffix: Keep a copy of each original file with this suffix
            jobs: Number of files processed at the same time
            console: Diagnostic console (stderr if not given)
        """
        self.table = table
        self.options = options or ProcessingOptions()
        self.encoding = encoding
        self.errors = errors
        self.backup_suffix = backup_suffix
        self.jobs = max(1, jobs)
        self.console = console if console is not None else Console(stderr=True)

    def report_error(self, message: str) -> None:
        """Show an error on the diagnostic channel; never silenced."""
        self.console.print(message, style="red", markup=False, highlight=False, soft_wrap=True)

    def run_stream(self, stdin: BinaryIO, stdout: BinaryIO) -> int:
        """
        Process binary standard input into binary standard output.

        Returns:
            Exit code
        """
        reader = io.TextIOWrapper(stdin, encoding=self.encoding, errors=self.errors, newline=TERMINATOR)
        writer = io.TextIOWrapper(stdout, encoding=self.encoding, errors=self.errors, newline=TERMINATOR)
        processor = LineProcessor(self.table, self.options, self.console)

        try:
            processor.run(reader, writer)
            try:
                writer.flush()
            except OSError as e:
                raise WriteError(f"Error writing to output: {e}") from e
        except ReplaceError as e:
            logger.error(f"Processing standard input failed: {e.message}")
            self.report_error(e.message)
            return EXIT_FAILURE
        finally:
            # Leave the underlying standard streams open
            reader.detach()
            try:
                writer.detach()
            except (OSError, ValueError) as e:
                logger.debug(f"Discarding unflushed output: {e}")

        return EXIT_OK

    def process_file(self, path: Path) -> FileOutcome:
        """Process one file, capturing its error instead of raising it."""
        try:
            stats = replace_in_file(
                path,
                self.table,
                self.options,
                encoding=self.encoding,
                errors=self.errors,
                backup_suffix=self.backup_suffix,
                diagnostics=self.console,
            )
        except ReplaceError as e:
            self.report_error(e.message)
            return FileOutcome(path=path, error=e)
        return FileOutcome(path=path, stats=stats)

    def run_files(self, paths: Sequence[Union[str, Path]]) -> RunSummary:
        """
        Rewrite every file in ``paths`` in place.

        Returns:
            RunSummary with one outcome per distinct path, in input order
        """
        unique = _unique_paths(paths)
        logger.info(f"Processing {len(unique)} files with {self.jobs} worker(s)")

        if self.jobs == 1 or len(unique) < 2:
            outcomes = [self.process_file(p) for p in unique]
        else:
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                outcomes = list(executor.map(self.process_file, unique))

        summary = RunSummary(outcomes)
        if summary.failed:
            logger.warning(f"{len(summary.failed)} of {len(unique)} files failed")
        return summary
