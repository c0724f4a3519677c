"""
ZIP archive creation for scanned source trees.

The writer streams every scanned file into a deflate archive written to a
temporary sibling of the output path, then moves it into place once the
archive is closed. Problems with a single source file are recorded and
skipped; problems with the archive stream itself abort the attempt.
"""

import asyncio
import os
import time
import warnings
import zipfile
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple
from colored_logger import get_colored_logger

from .config import CompressionLevel
from .diagnostics import Diagnostics
from .errors import ArchiveWarning, ArchiveWriteError
from .file_scanner import FileStat, ScanResult
from .progress import ProgressTracker

logger = get_colored_logger(__name__)

ARCHIVE_COMMENT_PREFIX = "Created by Portal Zip Generator on"
ZIP_MIN_DATE = (1980, 1, 1, 0, 0, 0)
ZIP_MAX_DATE = (2107, 12, 31, 23, 59, 58)
ENTRY_PERMISSIONS = 0o100644  # regular file, rw-r--r--


@dataclass(frozen=True)
class RunResult:
    """Outcome of one successful archive attempt."""

    output_path: str
    original_size: int
    compressed_size: int
    compression_ratio: str
    duration: float  # seconds
    files_processed: int
    total_files: int


def compression_ratio(original_size: int, compressed_size: int) -> str:
    """Space saved as a percentage string with two decimals."""
    if original_size <= 0:
        return "0.00"
    return f"{(original_size - compressed_size) / original_size * 100:.2f}"


class ByteCountingSink:
    """File wrapper that tracks the furthest offset written.

    zipfile seeks back to patch local headers, so the high-water mark rather
    than the sum of writes is the size of the archive.
    """

    def __init__(self, raw):
        self._raw = raw
        self.bytes_written = 0

    def write(self, data) -> int:
        written = self._raw.write(data)
        self.bytes_written = max(self.bytes_written, self._raw.tell())
        return written

    def tell(self) -> int:
        return self._raw.tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._raw.seek(offset, whence)

    def flush(self) -> None:
        self._raw.flush()

    def __getattr__(self, name):
        return getattr(self._raw, name)


class OutputPathResolver:
    """Decides where the archive is written without losing existing files."""

    def ensure_directory(self, directory: str) -> None:
        if directory and not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
            logger.info("Created directory: %s", directory)

    def unique_path(self, path: str) -> str:
        """First free sibling of path: name_1.ext, name_2.ext, ..."""
        base, ext = os.path.splitext(path)
        counter = 1
        candidate = path
        while os.path.exists(candidate):
            candidate = f"{base}_{counter}{ext}"
            counter += 1
        return candidate

    def resolve(self, output_path: str, overwrite: bool) -> str:
        self.ensure_directory(os.path.dirname(output_path))

        if not os.path.exists(output_path):
            return output_path

        if overwrite:
            os.remove(output_path)
            logger.info("Removed existing file: %s", output_path)
            return output_path

        unique = self.unique_path(output_path)
        logger.info("Using unique filename: %s", unique)
        return unique


class ZipArchiveWriter:
    """Writes a ScanResult into a ZIP archive."""

    def __init__(
        self,
        diagnostics: Optional[Diagnostics] = None,
        progress: Optional[ProgressTracker] = None,
        path_resolver: Optional[OutputPathResolver] = None,
    ):
        self.diagnostics = diagnostics or Diagnostics()
        self.progress = progress or ProgressTracker()
        self.path_resolver = path_resolver or OutputPathResolver()

    def _archive_comment(self) -> bytes:
        created = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return f"{ARCHIVE_COMMENT_PREFIX} {created}".encode("utf-8")

    def _entry_date_time(self, file_stat: FileStat) -> Tuple[int, ...]:
        date_time = time.localtime(file_stat.modified)[:6]
        if date_time < ZIP_MIN_DATE:
            warnings.warn(
                f"Timestamp before 1980 clamped: {file_stat.relative_path}",
                ArchiveWarning,
            )
            return ZIP_MIN_DATE
        if date_time > ZIP_MAX_DATE:
            warnings.warn(
                f"Timestamp after 2107 clamped: {file_stat.relative_path}",
                ArchiveWarning,
            )
            return ZIP_MAX_DATE
        return date_time

    def _read_file(self, file_stat: FileStat) -> Optional[bytes]:
        try:
            with open(file_stat.path, "rb") as f:
                return f.read()
        except OSError as e:
            self.diagnostics.error(
                f"Failed to add file {file_stat.relative_path}: {e.strerror or e}"
            )
            return None

    def _append_entry(
        self,
        zipf: zipfile.ZipFile,
        file_stat: FileStat,
        content: bytes,
        level: int,
    ) -> bool:
        """Add one entry. Stream failures propagate; entry problems are recorded.

        Warnings are captured only while this entry is written, never across
        an await, so warnings from other tasks are not taken for entry ones.
        """
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                info = zipfile.ZipInfo(
                    file_stat.relative_path, self._entry_date_time(file_stat)
                )
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = ENTRY_PERMISSIONS << 16
                if not content:
                    warnings.warn(
                        f"Empty entry: {file_stat.relative_path}", ArchiveWarning
                    )
                zipf.writestr(info, content, compresslevel=level)
                return True
            except (ValueError, zipfile.LargeZipFile) as e:
                self.diagnostics.error(
                    f"Failed to add file {file_stat.relative_path}: {e}"
                )
                return False
            finally:
                self._record_warnings(caught)

    def _record_warnings(self, caught) -> None:
        for warning in caught:
            self.diagnostics.warn(f"Archive warning: {warning.message}")

    async def _write_archive(
        self, scan_result: ScanResult, temp_path: str, level: int
    ) -> Tuple[int, int]:
        """Write all entries to temp_path; returns (entries written, archive size)."""
        appended = 0
        with open(temp_path, "wb") as raw:
            sink = ByteCountingSink(raw)
            with zipfile.ZipFile(
                sink,
                "w",
                zipfile.ZIP_DEFLATED,
                compresslevel=level,
                allowZip64=True,
            ) as zipf:
                zipf.comment = self._archive_comment()

                for file_stat in scan_result.files:
                    content = self._read_file(file_stat)
                    if content is not None and self._append_entry(
                        zipf, file_stat, content, level
                    ):
                        # An entry is complete once the next one starts
                        if appended:
                            self.progress.advance()
                        appended += 1

                    # Entry boundary: other tasks may run, cancellation lands here
                    await asyncio.sleep(0)
            raw.flush()
            os.fsync(raw.fileno())
        return appended, sink.bytes_written

    def _cleanup_temp_file(self, temp_path: str) -> None:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.debug("Failed to cleanup temp file %s: %s", temp_path, e)

    def prepare_output(self, output_path: str, overwrite: bool) -> str:
        """Resolve the final archive path, removing or sidestepping an existing file."""
        try:
            return self.path_resolver.resolve(output_path, overwrite)
        except OSError as e:
            raise ArchiveWriteError(
                f"Output stream error: {e}", phase="prepare", path=output_path
            ) from e

    async def create(
        self,
        scan_result: ScanResult,
        output_path: str,
        compression_level: str,
        overwrite: bool,
        started_at: Optional[float] = None,
        resolve_output: bool = True,
    ) -> RunResult:
        """
        Create the archive for scan_result.

        Args:
            scan_result: Files to archive, in the order they are written
            output_path: Requested archive path (may be uniquified)
            compression_level: Level name; unknown names use maximum compression
            overwrite: Replace an existing file instead of picking a new name
            started_at: time.perf_counter() value the run duration counts from
            resolve_output: False when output_path already came from
                prepare_output and must be written as is

        Returns:
            RunResult describing the archive on disk

        Raises:
            ArchiveWriteError: If the output stream or compressor fails
        """
        started_at = time.perf_counter() if started_at is None else started_at
        level = CompressionLevel.to_numeric(compression_level)

        if resolve_output:
            resolved_path = self.prepare_output(output_path, overwrite)
        else:
            resolved_path = output_path

        temp_path = f"{resolved_path}.tmp.{os.getpid()}"
        self.progress.start(scan_result.count)
        logger.info("Compressing %d files into %s", scan_result.count, resolved_path)

        try:
            appended, compressed_size = await self._write_archive(
                scan_result, temp_path, level
            )
            os.replace(temp_path, resolved_path)
        except zlib.error as e:
            self._cleanup_temp_file(temp_path)
            raise ArchiveWriteError(
                f"Archive error: {e}", phase="compress", path=resolved_path
            ) from e
        except OSError as e:
            self._cleanup_temp_file(temp_path)
            raise ArchiveWriteError(
                f"Output stream error: {e}", phase="write", path=resolved_path
            ) from e
        except BaseException:
            # Cancellation or an unexpected failure: never leave a partial archive
            self._cleanup_temp_file(temp_path)
            raise

        # The last entry only counts once the archive is closed and in place
        if appended:
            self.progress.advance()

        duration = time.perf_counter() - started_at
        result = RunResult(
            output_path=resolved_path,
            original_size=scan_result.total_size,
            compressed_size=compressed_size,
            compression_ratio=compression_ratio(
                scan_result.total_size, compressed_size
            ),
            duration=duration,
            files_processed=appended,
            total_files=scan_result.count,
        )
        logger.success(
            "Archive written: %s (%d/%d files)",
            resolved_path,
            appended,
            scan_result.count,
        )
        return result
