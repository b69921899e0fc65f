"""
Command-line interface for textreplace.

    replace [-s] [-v] from to [from to ...] [--] [files...]

Without files, standard input is read and the result written to standard
output. Files are rewritten in place.
"""

import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import click
from rich.console import Console

from . import __version__
from .config import Config, ProcessingOptions
from .core.errors import ReplaceError, UsageError
from .core.pairs import PatternTable
from .core.runner import ReplaceRunner, EXIT_FAILURE, EXIT_USAGE
from .utils.logging_setup import get_logger, log_operation, setup_logging


logger = get_logger(__name__)

SEPARATOR = "--"

CONTEXT_SETTINGS = {
    "help_option_names": ["-?", "--help"],
    # Options end at the first from-string so later tokens may start with '-'
    "allow_interspersed_args": False,
}


class ReplaceUsageError(click.UsageError):
    """Usage error reported with exit status 1."""
    exit_code = EXIT_USAGE


class ReplaceCommand(click.Command):
    """Command whose argument parsing errors exit with status 1."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


def split_arguments(tokens: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Split positional tokens into pair tokens and file names.

    The first ``--`` separates them; without it every token is a pair token.
    """
    tokens = list(tokens)
    if SEPARATOR in tokens:
        idx = tokens.index(SEPARATOR)
        return tokens[:idx], tokens[idx + 1:]
    return tokens, []


def show_pairs(console: Console, table: PatternTable) -> None:
    console.print("Replacement pairs:", markup=False, highlight=False)
    for pair in table:
        console.print(f"  {pair}", markup=False, highlight=False, soft_wrap=True)


@click.command(name="replace", cls=ReplaceCommand, context_settings=CONTEXT_SETTINGS)
@click.version_option(
    __version__, "-V", "--version",
    prog_name="replace",
    message="%(prog)s version %(version)s"
)
@click.option("-s", "--silent", is_flag=True,
              help="Silent mode. Suppress non-error messages.")
@click.option("-v", "--verbose", is_flag=True,
              help="Verbose mode. Output information about processing.")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to configuration file.")
@click.option("-j", "--jobs", type=click.IntRange(min=1),
              help="Number of files processed in parallel.")
@click.option("--backup", "backup_suffix", metavar="SUFFIX",
              help="Keep a copy of each original file with this suffix.")
@click.option("--encoding", help="Text encoding of input and output.")
@click.argument("tokens", nargs=-1, metavar="FROM TO [FROM TO ...] [--] [FILES...]")
@click.pass_context
def cli(ctx: click.Context,
        silent: bool,
        verbose: bool,
        config_path: Optional[Path],
        jobs: Optional[int],
        backup_suffix: Optional[str],
        encoding: Optional[str],
        tokens: Tuple[str, ...]):
    """Replace strings in files or from stdin to stdout.

    Each FROM string is replaced by the TO string that follows it. Where
    several FROM strings match at the same place the longest one wins.
    """
    pair_tokens, files = split_arguments(tokens)
    if len(pair_tokens) < 2 or len(pair_tokens) % 2:
        raise ReplaceUsageError("Replace strings must be in from/to pairs.", ctx=ctx)

    try:
        config = Config.load(config_path)
        # Command-line flags win over file and environment settings
        if silent:
            config.set("options.silent", True)
        if verbose:
            config.set("options.verbose", True)
        if jobs is not None:
            config.set("files.jobs", jobs)
        if backup_suffix is not None:
            config.set("files.backup_suffix", backup_suffix)
        if encoding is not None:
            config.set("io.encoding", encoding)
        config.validate()
    except UsageError as e:
        raise ReplaceUsageError(e.message, ctx=ctx) from e

    options: ProcessingOptions = config.processing_options()
    requested_level = config.get("logging.level", "WARNING").upper()
    level = requested_level
    if options.verbose and level in ("WARNING", "ERROR", "CRITICAL"):
        level = "INFO"
    # Log records reach stderr only when a lower level was configured
    setup_logging(
        "textreplace",
        level=level,
        log_dir=config.get("logging.log_dir"),
        console=not options.silent and requested_level in ("INFO", "DEBUG"),
        file=bool(config.get("logging.file", False)),
        json_format=bool(config.get("logging.json", True)),
    )
    log_operation(logger, "replace", pairs=len(pair_tokens) // 2, files=len(files))

    console = Console(stderr=True)
    try:
        table = PatternTable.from_tokens(pair_tokens)
    except ReplaceError as e:
        console.print(e.message, style="red", markup=False, highlight=False)
        ctx.exit(EXIT_USAGE if isinstance(e, UsageError) else EXIT_FAILURE)

    if options.verbose and not options.silent:
        show_pairs(console, table)

    runner = ReplaceRunner(
        table,
        options,
        encoding=config.get("io.encoding", "utf-8"),
        errors=config.get("io.errors", "surrogateescape"),
        backup_suffix=config.get("files.backup_suffix"),
        jobs=config.get("files.jobs", 1),
        console=console,
    )

    if not files:
        code = runner.run_stream(
            sys.stdin.buffer,
            sys.stdout.buffer,
        )
    else:
        summary = runner.run_files(files)
        code = summary.exit_code
        logger.info(f"{len(summary.succeeded)} files converted, {len(summary.failed)} failed")

    ctx.exit(code)


def main(argv: Optional[Sequence[str]] = None):
    """Main CLI entry point."""
    cli.main(args=list(argv) if argv is not None else None, prog_name="replace")


if __name__ == "__main__":
    main()
