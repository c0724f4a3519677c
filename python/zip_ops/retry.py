"""
Bounded retry with linear backoff for archive attempts.

State transitions:

    IDLE -> ATTEMPTING -> SUCCEEDED
                       -> RETRYING -> ATTEMPTING -> ...
                       -> EXHAUSTED

Every failed attempt is added to the run's error diagnostics before the next
one starts; diagnostics are never reset between attempts.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar
from colored_logger import get_colored_logger

from .diagnostics import Diagnostics
from .errors import ArchiveWriteError, RetryExhaustedError, ValidationError

logger = get_colored_logger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class RetryState(Enum):
    """Retry coordinator state."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class RetryCoordinator:
    """Runs an attempt function until it succeeds or attempts run out."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        diagnostics: Optional[Diagnostics] = None,
        sleeper: Optional[Sleeper] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.diagnostics = diagnostics or Diagnostics()
        self._sleep = sleeper or asyncio.sleep
        self.state = RetryState.IDLE
        self.attempts_made = 0
        self.history: List[Tuple[RetryState, int]] = [(RetryState.IDLE, 0)]

    def _transition(self, state: RetryState) -> None:
        self.state = state
        self.history.append((state, self.attempts_made))

    def delay_for(self, attempt: int) -> float:
        """Linear backoff: the n-th attempt waits base_delay * n."""
        return self.base_delay * attempt

    async def run(self, attempt_fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run attempt_fn sequentially until the first success.

        Validation errors are not retryable and propagate immediately. Any
        other exception counts as a failed attempt.

        Raises:
            RetryExhaustedError: After max_attempts failed attempts
        """
        if self.state is not RetryState.IDLE:
            raise RuntimeError("RetryCoordinator instances are single-use")

        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self._transition(RetryState.RETRYING)
                self.diagnostics.warn(f"Retry attempt {attempt}/{self.max_attempts}")
                logger.warning("Retry attempt %d/%d", attempt, self.max_attempts)
                await self._sleep(self.delay_for(attempt))

            self.attempts_made = attempt
            self._transition(RetryState.ATTEMPTING)
            try:
                result = await attempt_fn()
            except ValidationError:
                raise
            except ArchiveWriteError as e:
                last_error = e.message
            except Exception as e:
                # Unknown failures count against this attempt like write failures
                last_error = str(e) or type(e).__name__
            else:
                self._transition(RetryState.SUCCEEDED)
                if attempt > 1:
                    logger.notice(
                        "Attempt %d/%d succeeded after retrying", attempt, self.max_attempts
                    )
                return result

            self.diagnostics.error(f"Attempt {attempt} failed: {last_error}")
            logger.error("Attempt %d failed: %s", attempt, last_error)

        self._transition(RetryState.EXHAUSTED)
        raise RetryExhaustedError(
            self.max_attempts,
            last_error,
            errors=self.diagnostics.errors,
            warnings=self.diagnostics.warnings,
        )
