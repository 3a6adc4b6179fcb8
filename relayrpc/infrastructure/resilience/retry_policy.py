"""Fixed-delay retry policy used by the invocation engine."""

from dataclasses import dataclass

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INTER_ATTEMPT_DELAY_SECONDS = 0.3


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts a call gets and how long to wait between them.

    The delay is the same before every retry and never applied before the
    first attempt. There is no exponential growth and no jitter: the rate
    limiter does the pacing, this delay only slows down retry storms.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    inter_attempt_delay: float = DEFAULT_INTER_ATTEMPT_DELAY_SECONDS

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError(f"max_attempts must be an integer, got {self.max_attempts!r}.")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}.")
        if self.inter_attempt_delay < 0:
            raise ValueError(f"inter_attempt_delay must not be negative, got {self.inter_attempt_delay}.")

    def should_delay_before_attempt(self, attempt_index: int) -> bool:
        """Whether to wait before the attempt with the given 0-based index."""
        return attempt_index > 0 and self.inter_attempt_delay > 0

    def delay_before_attempt(self, attempt_index: int) -> float:
        """Seconds to wait before the attempt with the given 0-based index."""
        return self.inter_attempt_delay if self.should_delay_before_attempt(attempt_index) else 0.0
