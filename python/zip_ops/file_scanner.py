"""
Source tree scanning for archive operations.

This module walks the source directory, applies the exclusion policy and the
per-file size limit, and collects the metadata the archive writer needs.
Nothing found during the walk is fatal once the root itself is readable;
problems become diagnostics.
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from colored_logger import get_colored_logger

from .diagnostics import Diagnostics
from .errors import SourceNotADirectoryError, SourceNotFoundError
from .formatting import format_bytes

logger = get_colored_logger(__name__)


@dataclass(frozen=True)
class FileStat:
    """One regular file selected for archiving."""

    path: str
    relative_path: str
    size: int
    modified: float


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a single directory walk, in traversal order."""

    files: Tuple[FileStat, ...]
    total_size: int
    directories: int

    @property
    def count(self) -> int:
        return len(self.files)


class ExclusionMatcher:
    """Decides whether an entry is left out of the archive.

    A pattern starting with '*' matches names ending with the rest of the
    pattern. Any other pattern matches an identical name, or appears anywhere
    in the path relative to the source root (so 'env' also hits 'venv/x').
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns = tuple(patterns)

    def matches(self, name: str, relative_path: str) -> bool:
        for pattern in self.patterns:
            if pattern.startswith("*"):
                if name.endswith(pattern[1:]):
                    return True
            elif name == pattern or pattern in relative_path:
                return True
        return False


def validate_source(source_directory: str) -> None:
    """Raise unless source_directory is an existing directory."""
    if not os.path.exists(source_directory):
        raise SourceNotFoundError(f"Source directory not found: {source_directory}")
    if not os.path.isdir(source_directory):
        raise SourceNotADirectoryError(
            f"Source path is not a directory: {source_directory}"
        )


class PathInspector:
    """Walks a source tree and produces a ScanResult."""

    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self.diagnostics = diagnostics or Diagnostics()

    def _relative(self, root: str, path: str) -> str:
        # Archive names always use forward slashes
        return os.path.relpath(path, root).replace(os.sep, "/")

    def _list_directory(self, directory: str) -> Optional[List[os.DirEntry]]:
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self.diagnostics.error(
                f"Error reading directory {directory}: {e.strerror or e}"
            )
            return None

    def _inspect_file(
        self, entry: os.DirEntry, relative_path: str, max_file_size: int
    ) -> Optional[FileStat]:
        try:
            file_stat = entry.stat()
        except OSError as e:
            self.diagnostics.error(
                f"Error reading file {entry.path}: {e.strerror or e}"
            )
            return None

        if file_stat.st_size > max_file_size:
            self.diagnostics.warn(
                f"Large file skipped ({format_bytes(file_stat.st_size)}): {relative_path}"
            )
            return None

        return FileStat(
            path=entry.path,
            relative_path=relative_path,
            size=file_stat.st_size,
            modified=file_stat.st_mtime,
        )

    async def scan(
        self,
        root_path: str,
        exclude_patterns: Iterable[str],
        max_file_size: int,
        skip_paths: Iterable[str] = (),
    ) -> ScanResult:
        """Collect eligible files under root_path.

        Excluded directories are skipped as whole subtrees. Symlinks are
        followed; a directory reached twice through links is walked once.
        Files in skip_paths (the archive being written) are never collected.
        """
        matcher = ExclusionMatcher(exclude_patterns)
        skipped = {os.path.realpath(path) for path in skip_paths}
        files: List[FileStat] = []
        total_size = 0
        directories = 0

        logger.info("Analyzing source directory...")

        # Depth-first, entries in listing order, like a recursive walk
        pending = [root_path]
        visited = set()
        while pending:
            current = pending.pop()
            real_path = os.path.realpath(current)
            if real_path in visited:
                self.diagnostics.warn(
                    f"Directory loop skipped: {self._relative(root_path, current)}"
                )
                continue
            visited.add(real_path)

            entries = self._list_directory(current)
            if entries is None:
                continue

            subdirectories = []
            for entry in entries:
                relative_path = self._relative(root_path, entry.path)

                if matcher.matches(entry.name, relative_path):
                    self.diagnostics.warn(f"Excluded: {relative_path}")
                    continue

                try:
                    is_dir = entry.is_dir()
                    is_file = not is_dir and entry.is_file()
                except OSError as e:
                    self.diagnostics.error(
                        f"Error reading file {entry.path}: {e.strerror or e}"
                    )
                    continue

                if is_dir:
                    directories += 1
                    subdirectories.append(entry.path)
                elif is_file:
                    if os.path.realpath(entry.path) in skipped:
                        logger.debug("Skipping output archive: %s", relative_path)
                        continue
                    file_stat = self._inspect_file(entry, relative_path, max_file_size)
                    if file_stat is not None:
                        files.append(file_stat)
                        total_size += file_stat.size

            # Reversed so the first listed subdirectory is walked first
            pending.extend(reversed(subdirectories))

            # Let other tasks (the progress display) run between directories
            await asyncio.sleep(0)

        result = ScanResult(
            files=tuple(files), total_size=total_size, directories=directories
        )
        logger.success(
            "Found %d files (%s) in %d directories",
            result.count,
            format_bytes(result.total_size),
            result.directories,
        )
        return result
