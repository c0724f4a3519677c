"""
Completion report for a finished archive.

The report is derived from the RunResult, the run's diagnostics and the bytes
of the archive on disk. Checksums are always recomputed from the file so a
short or unflushed archive shows up as a different fingerprint.
"""

import hashlib
import os
import platform
import sys
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple
import psutil
from colored_logger import get_colored_logger

from .archive_writer import RunResult
from .errors import ReportError
from .formatting import format_bytes, format_duration

logger = get_colored_logger(__name__)

CHECKSUM_CHUNK_SIZE = 64 * 1024

# End of central directory record: 22 fixed bytes, comment length at offset 20
EOCD_SIGNATURE = b"PK\x05\x06"
EOCD_SIZE = 22


def calculate_file_checksum(
    path: str, limit: Optional[int] = None, chunk_size: int = CHECKSUM_CHUNK_SIZE
) -> str:
    """SHA-256 of the first `limit` bytes of a file (the whole file if None)."""
    sha256_hash = hashlib.sha256()
    remaining = limit
    with open(path, "rb") as f:
        while remaining is None or remaining > 0:
            size = chunk_size if remaining is None else min(chunk_size, remaining)
            chunk = f.read(size)
            if not chunk:
                break
            sha256_hash.update(chunk)
            if remaining is not None:
                remaining -= len(chunk)
    return sha256_hash.hexdigest()


def archive_comment_length(path: str) -> int:
    """Length of the trailing ZIP comment, 0 if none can be located."""
    file_size = os.path.getsize(path)
    # The comment is at most 65535 bytes, so the record sits within this tail
    tail_size = min(file_size, EOCD_SIZE + 0xFFFF)
    with open(path, "rb") as f:
        f.seek(file_size - tail_size)
        tail = f.read(tail_size)

    position = tail.rfind(EOCD_SIGNATURE)
    while position != -1:
        if position + EOCD_SIZE <= len(tail):
            length = int.from_bytes(tail[position + 20 : position + 22], "little")
            if position + EOCD_SIZE + length == len(tail):
                return length
        position = tail.rfind(EOCD_SIGNATURE, 0, position)
    return 0


@dataclass(frozen=True)
class ReportSummary:
    success: bool
    output_file: str
    files_processed: int
    original_size: str
    compressed_size: str
    compression_ratio: str
    duration: str
    throughput: str
    checksum: str
    content_checksum: str


@dataclass(frozen=True)
class ReportStatistics:
    files_processed: int
    total_files: int
    errors: int
    warnings: int


@dataclass(frozen=True)
class EnvironmentInfo:
    platform: str
    architecture: str
    python_version: str
    memory: str

    @classmethod
    def collect(cls) -> "EnvironmentInfo":
        try:
            memory = format_bytes(psutil.Process().memory_info().rss)
        except psutil.Error as e:
            logger.debug("Could not read process memory: %s", e)
            memory = "unknown"
        return cls(
            platform=sys.platform,
            architecture=platform.machine() or "unknown",
            python_version=platform.python_version(),
            memory=memory,
        )


@dataclass(frozen=True)
class Report:
    """Terminal artifact of a successful run."""

    summary: ReportSummary
    statistics: ReportStatistics
    environment: EnvironmentInfo
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "summary": asdict(self.summary),
            "statistics": asdict(self.statistics),
            "environment": asdict(self.environment),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class ReportBuilder:
    """Builds a Report from a RunResult and the run's diagnostics."""

    def __init__(self, chunk_size: int = CHECKSUM_CHUNK_SIZE):
        self.chunk_size = max(1024, chunk_size)

    @staticmethod
    def throughput_mb_per_second(original_size: int, duration: float) -> float:
        if duration <= 0:
            return 0.0
        return original_size / duration / (1024 * 1024)

    def content_checksum(self, path: str) -> str:
        """Checksum of the archive with its trailing comment left out.

        The comment embeds the creation time, so this is the figure that stays
        equal across runs over identical inputs.
        """
        comment_length = archive_comment_length(path)
        limit = os.path.getsize(path) - comment_length
        return calculate_file_checksum(path, limit=limit, chunk_size=self.chunk_size)

    def build(
        self,
        run_result: RunResult,
        errors: Tuple[str, ...],
        warnings: Tuple[str, ...],
        environment: Optional[EnvironmentInfo] = None,
    ) -> Report:
        throughput = self.throughput_mb_per_second(
            run_result.original_size, run_result.duration
        )
        try:
            checksum = calculate_file_checksum(
                run_result.output_path, chunk_size=self.chunk_size
            )
            content_checksum = self.content_checksum(run_result.output_path)
        except OSError as e:
            raise ReportError(
                f"Could not read archive for checksum: {e}",
                path=run_result.output_path,
                errors=errors,
                warnings=warnings,
            ) from e

        summary = ReportSummary(
            success=True,
            output_file=run_result.output_path,
            files_processed=run_result.files_processed,
            original_size=format_bytes(run_result.original_size),
            compressed_size=format_bytes(run_result.compressed_size),
            compression_ratio=f"{run_result.compression_ratio}%",
            duration=format_duration(run_result.duration),
            throughput=f"{throughput:.2f} MB/s",
            checksum=checksum,
            content_checksum=content_checksum,
        )
        statistics = ReportStatistics(
            files_processed=run_result.files_processed,
            total_files=run_result.total_files,
            errors=len(errors),
            warnings=len(warnings),
        )

        logger.debug("Report built for %s (sha256 %s)", run_result.output_path, checksum)

        return Report(
            summary=summary,
            statistics=statistics,
            environment=environment or EnvironmentInfo.collect(),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )
