"""
Error types for the replacement engine and its file handling.

Every error carries a message and an optional details dict so callers can
report failures uniformly, whichever layer raised them.
"""

from typing import Optional, Any, Dict


class ReplaceError(Exception):
    """
    Base exception for all textreplace errors.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize replace error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UsageError(ReplaceError):
    """Raised when the arguments or configuration are malformed."""


class PairCountError(UsageError):
    """Raised when replace strings are not given as from/to pairs."""

    def __init__(self, token_count: int, details: Optional[Dict[str, Any]] = None):
        super().__init__("Replace strings must be in from/to pairs.", details)
        self.token_count = token_count
        self.details['token_count'] = token_count


class ConfigError(UsageError):
    """Raised when a configuration file or override holds an invalid value."""


class AllocationError(ReplaceError):
    """Raised when memory runs out while building a table or a result line."""


class FileProcessingError(ReplaceError):
    """
    Raised when a file cannot be opened, read, written or swapped into place.

    The original file is left untouched whenever this error escapes
    ``replace_in_file``.
    """

    def __init__(self, message: str,
                 path: Optional[str] = None,
                 stage: str = 'general',
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize file processing error.

        Args:
            message: Error message
            path: File being processed when the error occurred
            stage: Stage that failed ('open', 'read', 'write', 'backup', 'rename')
            details: Additional error context
        """
        super().__init__(message, details)
        self.path = path
        self.stage = stage

        self.details.update({
            'path': path,
            'stage': stage
        })


class ReadError(FileProcessingError):
    """Raised when the line source fails."""

    def __init__(self, message: str, path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, path=path, stage='read', details=details)


class WriteError(FileProcessingError):
    """Raised when writing to the output sink fails."""

    def __init__(self, message: str, path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, path=path, stage='write', details=details)

