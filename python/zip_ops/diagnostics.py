"""
Append-only warning and error collections for a single run.
"""

from typing import List, Tuple
from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)


class Diagnostics:
    """Collects warnings and errors for one pipeline run.

    Entries are only ever appended; attempts within a run share one instance
    so nothing recorded by an earlier attempt is lost.
    """

    def __init__(self):
        self._warnings: List[str] = []
        self._errors: List[str] = []

    def warn(self, message: str) -> None:
        """Record a non-fatal warning."""
        self._warnings.append(message)
        logger.debug("Diagnostic warning: %s", message)

    def error(self, message: str) -> None:
        """Record a recovered error."""
        self._errors.append(message)
        logger.debug("Diagnostic error: %s", message)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(self._warnings)

    @property
    def errors(self) -> Tuple[str, ...]:
        return tuple(self._errors)

    @property
    def warning_count(self) -> int:
        return len(self._warnings)

    @property
    def error_count(self) -> int:
        return len(self._errors)
