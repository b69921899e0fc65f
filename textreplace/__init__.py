"""textreplace - Longest-match-first literal string replacement for files and streams."""

__version__ = "1.0.0"

from .config import Config, ProcessingOptions
from .core.pairs import PatternTable, ReplacePair
from .core.substitution import LineResult, apply
from .core.processor import LineProcessor, StreamStats
from .core.files import replace_in_file

__all__ = [
    "Config",
    "ProcessingOptions",
    "PatternTable",
    "ReplacePair",
    "LineResult",
    "apply",
    "LineProcessor",
    "StreamStats",
    "replace_in_file",
    "__version__",
]
