"""Retry utilities with exponential backoff for flaky page loads."""

import asyncio
import random
from typing import Callable, Any, Optional
from functools import wraps
from navcheck.core.logger import logger

class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 2,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
        exponential_base: float = 2.0,
        jitter: bool = True
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number with exponential backoff."""
        delay = min(
            self.initial_delay * (self.exponential_base ** attempt),
            self.max_delay
        )

        if self.jitter:
            # ±25% so parallel CI workers don't hammer the site in lockstep
            delay = delay * (0.75 + random.random() * 0.5)

        return delay

def is_transient_network_error(error: Exception) -> bool:
    """Chromium network failures that are worth another attempt."""
    message = str(error)
    return "net::" in message or "ERR_HTTP2_PROTOCOL_ERROR" in message

def retry_async(
    config: Optional[RetryConfig] = None,
    retryable_exceptions: tuple = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None
):
    """
    Decorator for async functions to add retry logic with exponential backoff.

    Args:
        config: Retry configuration (defaults to RetryConfig())
        retryable_exceptions: Tuple of exception types to retry on
        should_retry: Optional predicate; exceptions it rejects are re-raised immediately

    Example:
        @retry_async(RetryConfig(max_retries=3), should_retry=is_transient_network_error)
        async def open_page():
            ...
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            last_exception = None

            for attempt in range(config.max_retries + 1):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            f"Retry successful for {func.__name__} on attempt {attempt + 1}",
                            extra={'action': func.__name__, 'status': 'success'}
                        )

                    return result

                except retryable_exceptions as e:
                    if should_retry is not None and not should_retry(e):
                        raise
                    last_exception = e

                    if attempt >= config.max_retries:
                        logger.error(
                            f"All retry attempts exhausted for {func.__name__}",
                            extra={'action': func.__name__, 'status': 'error', 'reason': str(e)}
                        )
                        break

                    delay = config.calculate_delay(attempt)

                    logger.warning(
                        f"Retry attempt {attempt + 1}/{config.max_retries} for {func.__name__} after {delay:.2f}s",
                        extra={'action': func.__name__, 'reason': str(e)}
                    )

                    await asyncio.sleep(delay)

            raise last_exception

        return wrapper
    return decorator
