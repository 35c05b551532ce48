"""Retry executor with exponential backoff for provider calls."""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryDecision(Enum):
    """Outcome of classifying a failed attempt."""

    RETRY = "retry"
    BAIL = "bail"


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including initial attempt)
        base_delay: Base delay in seconds before first retry
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to add random jitter to delays
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")
        if self.max_attempts > 10:
            raise ValueError("max_attempts should not exceed 10 for practical purposes")
        if self.max_delay > 300:
            raise ValueError("max_delay should not exceed 300 seconds for practical purposes")

    @classmethod
    def from_config(cls, config) -> "RetryConfig":
        """Build from the pipeline configuration."""
        return cls(
            max_attempts=config.max_retries,
            base_delay=config.retry_delay,
            max_delay=config.max_retry_delay,
            exponential_base=config.retry_exponential_base,
            jitter=config.retry_jitter,
        )


class RetryExhaustedError(Exception):
    """Raised when all retry attempts have been exhausted.

    Attributes:
        attempts: Number of attempts made
        last_exception: The final exception that caused the retry to fail
        total_delay: Total time spent in delays
    """

    def __init__(
        self, attempts: int, last_exception: Exception, total_delay: float, label: str = ""
    ) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        self.total_delay = total_delay
        prefix = f"{label}: " if label else ""
        super().__init__(
            f"{prefix}retry exhausted after {attempts} attempts over {total_delay:.2f}s. "
            f"Last error: {last_exception}"
        )


def calculate_delay(
    attempt: int, base_delay: float, max_delay: float, exponential_base: float, jitter: bool = True
) -> float:
    """Calculate delay for a given retry attempt with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-based)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Whether to add random jitter

    Returns:
        Calculated delay in seconds, always between 0 and max_delay
    """
    if attempt == 0:
        return 0.0

    base_backoff = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)

    if jitter:
        # ±25% random jitter
        jitter_range = base_backoff * 0.25
        base_backoff += random.uniform(-jitter_range, jitter_range)

    return max(0.0, min(base_backoff, max_delay))


def classify_provider_error(exception: BaseException) -> RetryDecision:
    """Decide whether a failed provider call is worth another attempt.

    Connection failures, timeouts and 5xx responses are transient. Every
    other failure, including 429 and the remaining 4xx codes, is final.
    """
    if getattr(exception, "connection_error", False):
        return RetryDecision.RETRY
    if isinstance(exception, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return RetryDecision.RETRY

    status_code = getattr(exception, "status_code", None)
    if status_code is None and hasattr(exception, "response"):
        status_code = getattr(exception.response, "status_code", None)
    if isinstance(status_code, int) and 500 <= status_code < 600:
        return RetryDecision.RETRY

    return RetryDecision.BAIL


class RetryExecutor:
    """Runs an async operation up to ``max_attempts`` times.

    A failure classified as ``BAIL`` is re-raised unchanged. When every
    attempt fails with a retryable error the executor raises
    ``RetryExhaustedError`` wrapping the last one.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        classifier: Callable[[BaseException], RetryDecision] = classify_provider_error,
        on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    ) -> None:
        self.config = config or RetryConfig()
        self.classifier = classifier
        self.on_retry = on_retry

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "operation") -> T:
        """Invoke ``operation`` until it succeeds, bails or runs out of attempts.

        Args:
            operation: Zero-argument coroutine factory; called once per attempt
            label: Name used in log messages and the exhaustion error

        Returns:
            The operation's result

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error
            Exception: The original error when the classifier bails
        """
        max_attempts = self.config.max_attempts
        last_exception: Optional[Exception] = None
        total_delay = 0.0

        for attempt in range(max_attempts):
            if attempt > 0:
                logger.info(f"Retry attempt {attempt + 1}/{max_attempts} for {label}")
            try:
                return await operation()
            except Exception as e:
                last_exception = e

                if self.classifier(e) is RetryDecision.BAIL:
                    logger.error(f"Non-retriable exception in {label}: {e}")
                    raise

                if attempt + 1 >= max_attempts:
                    logger.error(f"All retry attempts exhausted for {label}: {e}")
                    break

                delay = calculate_delay(
                    attempt + 1,
                    self.config.base_delay,
                    self.config.max_delay,
                    self.config.exponential_base,
                    self.config.jitter,
                )
                logger.warning(
                    f"Attempt {attempt + 1}/{max_attempts} failed for {label}: {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                if self.on_retry is not None:
                    self.on_retry(attempt + 1, e, delay)
                await asyncio.sleep(delay)
                total_delay += delay

        raise RetryExhaustedError(
            max_attempts, last_exception or Exception("Unknown error"), total_delay, label
        )
