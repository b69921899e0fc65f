"""
In-place file rewriting through a temporary file.

The replaced text is written to a temporary file next to the original and
only moved over it once the whole file has been processed. On any failure
the temporary file is removed and the original is left as it was.
"""

import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console

from ..config import ProcessingOptions
from .errors import FileProcessingError
from .pairs import PatternTable
from .processor import TERMINATOR, LineProcessor, StreamStats

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".textreplace-"
TEMP_SUFFIX = ".tmp"

_STAGE_VERBS = {
    'open': 'open file',
    'read': 'read file',
    'write': 'write temporary file for',
    'backup': 'back up file',
    'rename': 'replace file',
}


def _discard(tmp_path: Optional[Path]) -> None:
    """Remove a leftover temporary file."""
    if tmp_path is None:
        return
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {tmp_path}: {e}")


def backup_path_for(path: Path, suffix: str) -> Path:
    """Path the original is copied to before it is replaced."""
    return path.with_name(path.name + suffix)


def replace_in_file(path: Union[str, Path],
                    table: PatternTable,
                    options: Optional[ProcessingOptions] = None,
                    *,
                    encoding: str = "utf-8",
                    errors: str = "surrogateescape",
                    backup_suffix: Optional[str] = None,
                    diagnostics: Optional[Console] = None) -> StreamStats:
    """
    Apply ``table`` to every line of ``path`` and replace the file.

    Args:
        path: File to rewrite
        table: Pattern table to apply
        options: Silent/verbose flags
        encoding: Text encoding used for reading and writing
        errors: Codec error handler; the default keeps undecodable bytes intact
        backup_suffix: If given, keep a copy of the original at ``path + suffix``
        diagnostics: Console for status and verbose output

    Returns:
        StreamStats for the file

    Raises:
        FileProcessingError: If any stage fails; the original is unchanged
    """
    path = Path(path)
    options = options or ProcessingOptions()
    console = diagnostics if diagnostics is not None else Console(stderr=True)
    processor = LineProcessor(table, options, console)

    stage = 'open'
    tmp_path: Optional[Path] = None
    swapped = False

    try:
        with open(path, "r", encoding=encoding, errors=errors, newline=TERMINATOR) as src:
            stage = 'write'
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=encoding,
                errors=errors,
                newline=TERMINATOR,
                dir=path.parent,
                prefix=TEMP_PREFIX,
                suffix=TEMP_SUFFIX,
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                stats = processor.run(src, tmp, name=str(path))
                tmp.flush()
                os.fsync(tmp.fileno())

        stage = 'rename'
        shutil.copymode(path, tmp_path)

        if backup_suffix:
            stage = 'backup'
            backup = backup_path_for(path, backup_suffix)
            shutil.copy2(path, backup)
            logger.info(f"Created backup: {path} -> {backup}")

        stage = 'rename'
        os.replace(tmp_path, path)
        swapped = True

    except OSError as e:
        reason = e.strerror or str(e)
        logger.error(f"Failed to {_STAGE_VERBS[stage]} {path}: {reason}")
        raise FileProcessingError(
            f"Failed to {_STAGE_VERBS[stage]} {path}: {reason}",
            path=str(path),
            stage=stage,
            details={'errno': e.errno}
        ) from e

    finally:
        if not swapped:
            _discard(tmp_path)

    logger.info(f"Converted {path}: {stats.changed_lines} of {stats.lines} lines changed")
    if options.verbose and not options.silent:
        console.print(f"{path} converted", markup=False, highlight=False, soft_wrap=True)

    return stats
