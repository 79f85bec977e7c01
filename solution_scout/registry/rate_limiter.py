import random


class RateLimiter:
    """Exponential backoff with jitter for throttled registry requests."""

    def __init__(
        self,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        backoff_factor: float = 2.0,
        jitter_factor: float = 0.1,
        max_retries: int = 3,
    ):
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter_factor = jitter_factor
        self.max_retries = max_retries
        self._current_delay = initial_delay
        self._consecutive_errors = 0

    @property
    def exhausted(self) -> bool:
        """Whether the retry budget has been used up."""
        return self._consecutive_errors >= self.max_retries

    def backoff(self) -> float:
        """Calculate next delay with exponential backoff and jitter."""
        self._consecutive_errors += 1
        self._current_delay = min(
            self._current_delay * self.backoff_factor,
            self.max_delay,
        )
        jitter = self._current_delay * self.jitter_factor * (2 * random.random() - 1)
        return self._current_delay + jitter
