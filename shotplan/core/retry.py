"""
Retry policy for external generator calls.

Every call into a generator (shot proposals, prompt batches, frame images,
video submissions) goes through retry_async_call. Validation and
configuration failures raised by shotplan itself are never retried.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from shotplan.core.exceptions import ConfigurationError, PlanningError
from shotplan.core.logging_config import get_logger

logger = get_logger("core.retry")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Backoff policy for one kind of generator call."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: Tuple[float, float] = (0.5, 1.5)
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)
    fatal_exceptions: Tuple[Type[Exception], ...] = (ConfigurationError, PlanningError)

    @classmethod
    def from_render_config(cls, render_config) -> 'RetryConfig':
        """Policy for frame and video calls, taken from a RenderConfig."""
        return cls(
            max_retries=render_config.max_retries,
            base_delay=render_config.retry_base_delay,
            max_delay=max(render_config.retry_base_delay * 8, 1.0),
        )

    @property
    def attempts(self) -> int:
        return self.max_retries + 1


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Seconds to wait after the given failed attempt (0-indexed).

    Grows by exponential_base per attempt, capped at max_delay, then
    scaled by a random jitter factor when enabled.
    """
    delay = min(config.base_delay * (config.exponential_base ** attempt), config.max_delay)
    if config.jitter:
        delay *= random.uniform(*config.jitter_range)
    return delay


async def retry_async_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    operation: Optional[str] = None,
    **kwargs: Any
) -> T:
    """
    Await func(*args, **kwargs), retrying transient failures.

    Args:
        func: Generator coroutine function
        config: Backoff policy (PLANNING_RETRY_CONFIG if not provided)
        on_retry: Called with (exception, attempt) before each wait
        operation: Label used in log messages, defaults to func's name

    Example:
        raw = await retry_async_call(
            generator.propose_shots,
            scene_context,
            config=RetryConfig(max_retries=5),
            operation="propose_shots scene-1"
        )
    """
    config = config or PLANNING_RETRY_CONFIG
    label = operation or getattr(func, "__name__", "generator call")

    for attempt in range(config.attempts):
        try:
            return await func(*args, **kwargs)
        except config.fatal_exceptions:
            raise
        except config.retryable_exceptions as e:
            if attempt + 1 >= config.attempts:
                logger.error(f"{label}: giving up after {config.attempts} attempt(s): {e}")
                raise

            delay = calculate_delay(attempt, config)
            logger.warning(
                f"{label}: attempt {attempt + 1}/{config.attempts} failed ({e}), "
                f"retrying in {delay:.2f}s"
            )
            if on_retry:
                on_retry(e, attempt)
            await asyncio.sleep(delay)

    raise RuntimeError(f"{label}: retry loop exited without a result")


# Proposal and prompt batch calls are single text round-trips
PLANNING_RETRY_CONFIG = RetryConfig(
    max_retries=3,
    base_delay=2.0,
    max_delay=30.0,
)
