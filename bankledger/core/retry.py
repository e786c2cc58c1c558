"""
Bounded retry with exponential backoff for transfers that lost a race.
"""
from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from bankledger.core.config import Settings
from bankledger.core.errors import TransferFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.05,
        max_delay: float = 1.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.transfer_retry_attempts,
            base_delay=settings.transfer_retry_base_delay_seconds,
            max_delay=settings.transfer_retry_max_delay_seconds,
        )


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Delay before the attempt following ``attempt`` (1-based)."""
    delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    delay = min(delay, config.max_delay)
    if config.jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay


def retry_transfer(func: Callable[[], T], config: RetryConfig, sleep: Callable[[float], None] = time.sleep) -> T:
    """Call ``func`` until it succeeds or raises something other than a retryable ``TransferFailed``.

    Only retryable failures are repeated: those guarantee that the failed
    attempt committed nothing, so running it again cannot double-post.
    """
    attempt = 1
    while True:
        try:
            return func()
        except TransferFailed as exc:
            if not exc.retryable:
                raise
            if attempt >= config.max_attempts:
                logger.error(f"Transfer still conflicting after {attempt} attempts")
                raise
            delay = calculate_delay(attempt, config)
            logger.warning(f"Transfer attempt {attempt}/{config.max_attempts} failed: {exc.message}. Retrying in {delay:.2f}s")
            sleep(delay)
        attempt += 1
