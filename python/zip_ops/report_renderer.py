"""
Console rendering of completion reports and failures.
"""

import sys
from typing import List, Optional, Sequence, TextIO

from .errors import ZipGeneratorError
from .report_builder import Report

SEPARATOR = "=" * 60
MAX_LISTED_WARNINGS = 10
TRUNCATED_WARNINGS_SHOWN = 5


def numbered(items: Sequence[str]) -> List[str]:
    return [f"  {index}. {item}" for index, item in enumerate(items, 1)]


class ReportRenderer:
    """Writes a human readable report to stdout and failures to stderr."""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def _warning_lines(self, warnings: Sequence[str]) -> List[str]:
        if not warnings:
            return []
        if len(warnings) <= MAX_LISTED_WARNINGS:
            return ["", "Warnings:"] + numbered(warnings)
        return [
            "",
            f"Warnings: {len(warnings)} warnings "
            f"(showing first {TRUNCATED_WARNINGS_SHOWN}):",
        ] + numbered(warnings[:TRUNCATED_WARNINGS_SHOWN])

    def report_lines(self, report: Report) -> List[str]:
        summary = report.summary
        statistics = report.statistics
        environment = report.environment

        lines = [
            "",
            SEPARATOR,
            "               COMPRESSION REPORT",
            SEPARATOR,
            "",
            "Summary:",
            f"  Output File: {summary.output_file}",
            f"  Files Processed: {summary.files_processed}",
            f"  Original Size: {summary.original_size}",
            f"  Compressed Size: {summary.compressed_size}",
            f"  Compression Ratio: {summary.compression_ratio}",
            f"  Duration: {summary.duration}",
            f"  Throughput: {summary.throughput}",
            f"  SHA-256: {summary.checksum}",
            f"  Content SHA-256: {summary.content_checksum}",
        ]

        if statistics.errors > 0 or statistics.warnings > 0:
            lines += [
                "",
                "Issues:",
                f"  Errors: {statistics.errors}",
                f"  Warnings: {statistics.warnings}",
            ]

        lines += [
            "",
            "System:",
            f"  Platform: {environment.platform} {environment.architecture}",
            f"  Python: {environment.python_version}",
            f"  Memory Used: {environment.memory}",
        ]

        if report.errors:
            lines += ["", "Errors:"] + numbered(report.errors)

        lines += self._warning_lines(report.warnings)
        lines += ["", SEPARATOR]
        return lines

    def failure_lines(self, error: ZipGeneratorError) -> List[str]:
        lines = ["", f"Fatal Error: {error.message}"]
        if error.errors:
            lines += ["", "Detailed Errors:"] + numbered(error.errors)
        lines += self._warning_lines(error.warnings)
        return lines

    def render(self, report: Report) -> None:
        self.out.write("\n".join(self.report_lines(report)) + "\n")
        self.out.flush()

    def render_failure(self, error: ZipGeneratorError) -> None:
        self.err.write("\n".join(self.failure_lines(error)) + "\n")
        self.err.flush()
