"""
Run configuration for the zip generator.

Defaults mirror the archiver's built-in policy; an optional JSON document can
override a subset of them. A broken or missing document never stops a run,
it only produces a warning.
"""

import json
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple
from colored_logger import get_colored_logger

from .errors import InvalidLevelError

logger = get_colored_logger(__name__)

DEFAULT_EXCLUDE_PATTERNS = (
    ".git",
    ".gitignore",
    "node_modules",
    ".env",
    "*.log",
    ".DS_Store",
    "Thumbs.db",
)
DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB per file
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds, multiplied by the attempt number
DEFAULT_PROGRESS_INTERVAL = 0.1


class CompressionLevel:
    """Named compression policies and their deflate effort values."""

    STORE = "store"
    FAST = "fast"
    DEFAULT = "default"
    BEST = "best"

    LEVELS = {
        STORE: 0,
        FAST: 1,
        DEFAULT: 6,
        BEST: 9,
    }

    @classmethod
    def names(cls) -> List[str]:
        return list(cls.LEVELS)

    @classmethod
    def validate(cls, name: str) -> str:
        """Return the name unchanged, or raise InvalidLevelError."""
        if name not in cls.LEVELS:
            raise InvalidLevelError(name, cls.names())
        return name

    @classmethod
    def to_numeric(cls, name: str) -> int:
        """Map a level name to zlib effort; unknown names get maximum compression."""
        return cls.LEVELS.get(name, cls.LEVELS[cls.BEST])


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable settings for one archive run."""

    source_directory: str
    output_path: str
    compression_level: str = CompressionLevel.BEST
    overwrite: bool = True
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    progress_interval: float = field(default=DEFAULT_PROGRESS_INTERVAL, compare=False)

    @classmethod
    def create(
        cls,
        source_directory: str,
        output_path: str,
        overrides: Optional[Dict[str, Any]] = None,
        compression_level: Optional[str] = None,
    ) -> "RunConfiguration":
        """Build a configuration with absolute paths.

        The explicit compression_level argument wins over the overrides
        mapping, which wins over the defaults.
        """
        values = dict(overrides or {})
        if compression_level is not None:
            values["compression_level"] = compression_level
        if "exclude_patterns" in values:
            values["exclude_patterns"] = tuple(values["exclude_patterns"])

        return cls(
            source_directory=os.path.abspath(source_directory),
            output_path=os.path.abspath(output_path),
            **values,
        )

    @property
    def numeric_level(self) -> int:
        return CompressionLevel.to_numeric(self.compression_level)

    def with_overrides(self, **changes: Any) -> "RunConfiguration":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)


class ConfigLoader:
    """Loads JSON configuration overrides and merges them over the defaults."""

    # key -> (accepted types, must be positive)
    SCHEMA = {
        "compression_level": ((str,), False),
        "exclude_patterns": ((list,), False),
        "max_file_size": ((int,), True),
        "retry_attempts": ((int,), True),
        "retry_delay": ((int, float), False),
        "overwrite": ((bool,), False),
    }

    def _load_json(self, path: str) -> Any:
        """
        Loads JSON from the given file path.

        :param path: The path to the JSON file.
        :return: The parsed JSON if valid, otherwise None.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(
                "Could not load config from %s, using defaults: %s", path, e
            )
            return None

    def _validate_value(self, key: str, value: Any) -> bool:
        types, positive = self.SCHEMA[key]
        # bool is an int subclass; only accept it where bool is expected
        if isinstance(value, bool) and bool not in types:
            return False
        if not isinstance(value, types):
            return False
        if key == "compression_level":
            return value in CompressionLevel.LEVELS
        if key == "exclude_patterns":
            return all(isinstance(item, str) and item for item in value)
        if positive and value <= 0:
            return False
        if key == "retry_delay" and value < 0:
            return False
        return True

    def merge(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Keep the recognised, well-typed keys of a parsed document."""
        overrides: Dict[str, Any] = {}
        for key, value in raw.items():
            if key not in self.SCHEMA:
                logger.debug("Ignoring unknown config key: %s", key)
                continue
            if not self._validate_value(key, value):
                logger.warning(
                    "Invalid value for config key '%s' (%r), keeping default",
                    key,
                    value,
                )
                continue
            overrides[key] = value
        return overrides

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        """Return override values from config_path, or {} when unusable."""
        if not config_path:
            return {}

        if not os.path.isfile(config_path):
            logger.warning(
                "Could not load config from %s, using defaults: file not found",
                config_path,
            )
            return {}

        raw = self._load_json(config_path)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning(
                "Could not load config from %s, using defaults: expected a JSON object",
                config_path,
            )
            return {}

        overrides = self.merge(raw)
        logger.info("Configuration loaded from '%s'.", config_path)
        return overrides
