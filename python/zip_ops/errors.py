"""
Exception taxonomy for the zip generation pipeline.

Every failure that leaves the pipeline is a ZipGeneratorError so callers get
the accumulated diagnostics alongside the one-line cause.
"""

from typing import List, Optional, Sequence


class ZipGeneratorError(Exception):
    """Base error carrying the diagnostics collected before the failure."""

    def __init__(
        self,
        message: str,
        errors: Optional[Sequence[str]] = None,
        warnings: Optional[Sequence[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])
        self.warnings: List[str] = list(warnings or [])

    def attach_diagnostics(
        self, errors: Sequence[str], warnings: Sequence[str]
    ) -> "ZipGeneratorError":
        """Replace the carried diagnostics with a fresh snapshot."""
        self.errors = list(errors)
        self.warnings = list(warnings)
        return self

    def __str__(self) -> str:
        return self.message


class ValidationError(ZipGeneratorError):
    """Invalid input detected before any archive is written. Never retried."""

    pass


class SourceNotFoundError(ValidationError, FileNotFoundError):
    """Raised when the source directory does not exist."""

    pass


class SourceNotADirectoryError(ValidationError, NotADirectoryError):
    """Raised when the source path exists but is not a directory."""

    pass


class InvalidLevelError(ValidationError, ValueError):
    """Raised when a compression level name is not recognised."""

    def __init__(self, level: str, accepted: Sequence[str]):
        self.level = level
        self.accepted = list(accepted)
        super().__init__(
            f"Invalid compression level: {level}. Available: {', '.join(self.accepted)}"
        )


class NoFilesError(ValidationError):
    """Raised when nothing is left to archive after scanning."""

    def __init__(self, source_directory: str = ""):
        self.source_directory = source_directory
        super().__init__("No files to compress")


class ArchiveWriteError(ZipGeneratorError):
    """The archive sink or compressor failed during one attempt."""

    def __init__(self, message: str, phase: str = "write", path: Optional[str] = None):
        self.phase = phase
        self.path = path
        super().__init__(message)


class ReportError(ZipGeneratorError):
    """The finished archive could not be read back for the report."""

    def __init__(
        self,
        message: str,
        phase: str = "report",
        path: Optional[str] = None,
        errors: Optional[Sequence[str]] = None,
        warnings: Optional[Sequence[str]] = None,
    ):
        self.phase = phase
        self.path = path
        super().__init__(message, errors, warnings)


class RetryExhaustedError(ZipGeneratorError):
    """Every configured attempt failed."""

    def __init__(
        self,
        attempts: int,
        last_error: str,
        errors: Optional[Sequence[str]] = None,
        warnings: Optional[Sequence[str]] = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"All {attempts} attempts failed. Last error: {last_error}",
            errors,
            warnings,
        )


class ArchiveWarning(UserWarning):
    """Non-fatal condition raised while writing archive entries."""

    pass
