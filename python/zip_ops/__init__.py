from .errors import (
    ZipGeneratorError,
    ValidationError,
    SourceNotFoundError,
    SourceNotADirectoryError,
    InvalidLevelError,
    NoFilesError,
    ArchiveWriteError,
    ReportError,
    RetryExhaustedError,
    ArchiveWarning,
)
from .config import CompressionLevel, RunConfiguration, ConfigLoader
from .diagnostics import Diagnostics
from .formatting import format_bytes

# Pipeline components
from .file_scanner import (
    ExclusionMatcher,
    FileStat,
    ScanResult,
    PathInspector,
    validate_source,
)
from .progress import ProgressTracker, ConsoleProgressDisplay, log_progress
from .archive_writer import (
    RunResult,
    ZipArchiveWriter,
    ByteCountingSink,
    OutputPathResolver,
    compression_ratio,
)
from .retry import RetryCoordinator, RetryState
from .report_builder import (
    Report,
    ReportSummary,
    ReportStatistics,
    EnvironmentInfo,
    ReportBuilder,
    calculate_file_checksum,
)
from .report_renderer import ReportRenderer

# Orchestration
from .zip_generator import ZipGenerator, generate_with_progress, create_zip_with_progress

__all__ = [
    # Errors
    "ZipGeneratorError",
    "ValidationError",
    "SourceNotFoundError",
    "SourceNotADirectoryError",
    "InvalidLevelError",
    "NoFilesError",
    "ArchiveWriteError",
    "ReportError",
    "RetryExhaustedError",
    "ArchiveWarning",
    # Configuration
    "CompressionLevel",
    "RunConfiguration",
    "ConfigLoader",
    "Diagnostics",
    "format_bytes",
    # Scanning
    "ExclusionMatcher",
    "FileStat",
    "ScanResult",
    "PathInspector",
    "validate_source",
    # Progress
    "ProgressTracker",
    "ConsoleProgressDisplay",
    "log_progress",
    # Writing
    "RunResult",
    "ZipArchiveWriter",
    "ByteCountingSink",
    "OutputPathResolver",
    "compression_ratio",
    # Retry
    "RetryCoordinator",
    "RetryState",
    # Reporting
    "Report",
    "ReportSummary",
    "ReportStatistics",
    "EnvironmentInfo",
    "ReportBuilder",
    "calculate_file_checksum",
    "ReportRenderer",
    # Orchestration
    "ZipGenerator",
    "generate_with_progress",
    "create_zip_with_progress",
]
