"""
Zip Generator - orchestrates one archive run.

Validates the request, scans the source tree, writes the archive under the
retry policy and builds the completion report. Each run gets its own
diagnostics, progress counter and components; nothing is shared between runs.
"""

import asyncio
import time
from typing import Optional
from colored_logger import get_colored_logger

from .archive_writer import RunResult, ZipArchiveWriter
from .config import CompressionLevel, RunConfiguration
from .diagnostics import Diagnostics
from .errors import ArchiveWriteError, NoFilesError, ZipGeneratorError
from .file_scanner import PathInspector, ScanResult, validate_source
from .progress import ConsoleProgressDisplay, ProgressTracker, log_progress
from .report_builder import Report, ReportBuilder
from .retry import RetryCoordinator, Sleeper

logger = get_colored_logger(__name__)


class ZipGenerator:
    """
    Runs the scan -> write (with retries) -> report pipeline for one configuration.

    Components:
    - Source scanning and exclusion: PathInspector
    - Archive writing: ZipArchiveWriter
    - Retry policy: RetryCoordinator
    - Completion report: ReportBuilder
    """

    def __init__(
        self,
        config: RunConfiguration,
        progress: Optional[ProgressTracker] = None,
        sleeper: Optional[Sleeper] = None,
    ):
        self.config = config
        self.diagnostics = Diagnostics()
        self.progress = progress or ProgressTracker()
        self.inspector = PathInspector(self.diagnostics)
        self.writer = ZipArchiveWriter(self.diagnostics, self.progress)
        self.retry = RetryCoordinator(
            max_attempts=config.retry_attempts,
            base_delay=config.retry_delay,
            diagnostics=self.diagnostics,
            sleeper=sleeper,
        )
        self.report_builder = ReportBuilder()

    def _validate(self) -> None:
        validate_source(self.config.source_directory)
        CompressionLevel.validate(self.config.compression_level)

    async def _scan(self, output_path: str) -> ScanResult:
        scan_result = await self.inspector.scan(
            self.config.source_directory,
            self.config.exclude_patterns,
            self.config.max_file_size,
            skip_paths=(output_path,),
        )
        if scan_result.count == 0:
            raise NoFilesError(self.config.source_directory)
        return scan_result

    async def _attempt(
        self, scan_result: ScanResult, output_path: str, started_at: float
    ) -> RunResult:
        try:
            return await self.writer.create(
                scan_result,
                output_path,
                self.config.compression_level,
                self.config.overwrite,
                started_at=started_at,
                resolve_output=False,
            )
        except ZipGeneratorError:
            raise
        except Exception as e:
            raise ArchiveWriteError(
                f"Archive error: {e}", phase="write", path=output_path
            ) from e

    async def generate(self) -> Report:
        """
        Produce the archive and its report.

        Returns:
            Report for the finished archive

        Raises:
            ZipGeneratorError: Validation failure, no files, exhausted retries
                or an unreadable finished archive; always carrying the run's
                errors and warnings
        """
        try:
            self._validate()

            logger.info("Starting compression of %s", self.config.source_directory)
            logger.info("Output: %s", self.config.output_path)
            logger.info(
                "Compression level: %s (%d)",
                self.config.compression_level,
                self.config.numeric_level,
            )

            # An existing archive is removed or sidestepped before the scan, so
            # an output inside the source tree is never collected
            output_path = self.writer.prepare_output(
                self.config.output_path, self.config.overwrite
            )

            # Duration covers scanning and writing
            started_at = time.perf_counter()
            scan_result = await self._scan(output_path)

            run_result = await self.retry.run(
                lambda: self._attempt(scan_result, output_path, started_at)
            )
            return self.report_builder.build(
                run_result, self.diagnostics.errors, self.diagnostics.warnings
            )
        except ZipGeneratorError as e:
            e.attach_diagnostics(self.diagnostics.errors, self.diagnostics.warnings)
            logger.error("Compression failed: %s", e.message)
            raise


async def generate_with_progress(
    config: RunConfiguration, show_spinner: bool = True
) -> Report:
    """Run a ZipGenerator with console progress that is always torn down."""
    # The spinner and PROGRESS log lines would fight over the terminal
    progress = ProgressTracker() if show_spinner else ProgressTracker([log_progress])
    generator = ZipGenerator(config, progress=progress)
    display = ConsoleProgressDisplay(progress, interval=config.progress_interval)

    if show_spinner:
        display.start()
    try:
        return await generator.generate()
    finally:
        await display.stop()


def create_zip_with_progress(
    source_directory: str,
    output_path: str,
    compression_level: str = CompressionLevel.BEST,
    show_spinner: bool = True,
    **overrides,
) -> Report:
    """
    Convenience function to create an archive with progress reporting.

    Args:
        source_directory: Directory to archive
        output_path: Archive path to write
        compression_level: One of store, fast, default, best
        show_spinner: Draw the console spinner while running
        **overrides: Any other RunConfiguration field

    Returns:
        Report for the created archive

    Raises:
        ZipGeneratorError: If validation fails or every attempt fails
    """
    config = RunConfiguration.create(
        source_directory,
        output_path,
        overrides=overrides,
        compression_level=compression_level,
    )
    return asyncio.run(generate_with_progress(config, show_spinner=show_spinner))
