"""Line-by-line driver that feeds a stream through the substitution engine."""

from dataclasses import dataclass
from typing import Iterable, Optional, TextIO
import logging

from rich.console import Console

from ..config import ProcessingOptions
from .errors import ReadError, WriteError
from .pairs import PatternTable
from .substitution import apply

logger = logging.getLogger(__name__)

TERMINATOR = "\n"


@dataclass
class StreamStats:
    """Counters for one processed stream."""
    lines: int = 0
    changed_lines: int = 0

    @property
    def changed(self) -> bool:
        return self.changed_lines > 0


class LineProcessor:
    """
    Applies a pattern table to every line of a stream.

    One line is read, replaced and written before the next is read. The
    table is shared read-only, so independent processors may run on
    different streams at the same time.
    """

    def __init__(self,
                 table: PatternTable,
                 options: Optional[ProcessingOptions] = None,
                 diagnostics: Optional[Console] = None):
        """
        Initialize processor.

        Args:
            table: Pattern table to apply
            options: Silent/verbose flags
            diagnostics: Console for verbose output (stderr if not given)
        """
        self.table = table
        self.options = options or ProcessingOptions()
        self.diagnostics = diagnostics if diagnostics is not None else Console(stderr=True)

    def run(self, source: Iterable[str], sink: TextIO, name: Optional[str] = None) -> StreamStats:
        """
        Process ``source`` into ``sink`` until the source is exhausted.

        Args:
            source: Iterable of lines, each with at most one trailing newline
            sink: Object with a ``write`` method receiving the output
            name: Stream name used in error messages

        Returns:
            StreamStats for the stream

        Raises:
            ReadError: If the source fails
            WriteError: If writing to the sink fails; earlier output is kept
        """
        stats = StreamStats()
        lines = iter(source)

        while True:
            try:
                raw = next(lines)
            except StopIteration:
                break
            except (OSError, UnicodeDecodeError) as e:
                raise ReadError(f"Error reading {name or 'input'}: {e}", path=name) from e

            if raw.endswith(TERMINATOR):
                line, terminator = raw[:-1], TERMINATOR
            else:
                line, terminator = raw, ""

            result = apply(line, self.table)
            stats.lines += 1

            try:
                sink.write(result.text + terminator)
            except (OSError, ValueError) as e:
                logger.error(f"Write failed after {stats.lines - 1} lines of {name or 'output'}: {e}")
                message = f"Error writing output of {name}: {e}" if name else f"Error writing to output: {e}"
                raise WriteError(message, path=name) from e

            if result.changed:
                stats.changed_lines += 1
                if self.options.verbose:
                    self.diagnostics.print(
                        f"Replaced in line: {result.text}",
                        markup=False, highlight=False, soft_wrap=True
                    )

        logger.debug(f"Processed {stats.lines} lines ({stats.changed_lines} changed) from {name or 'input'}")
        return stats
