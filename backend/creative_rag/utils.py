"""
Shared helpers for the ingestion and retrieval services.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential delay before retry number `attempt` (1-based): base, 2*base, 4*base... capped."""
    return min(max_delay, base_delay * (2 ** (attempt - 1)))


def call_with_retries(
    func: Callable[[], T],
    *,
    attempts: int,
    retry_on: Tuple[Type[BaseException], ...],
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    sleep: Callable[[float], None] = time.sleep,
    should_stop: Optional[Callable[[], bool]] = None,
    description: str = "call",
) -> T:
    """
    Call func up to `attempts` times, sleeping with exponential backoff between tries.

    Only exceptions in retry_on are retried; anything else propagates at once.
    The last retryable exception is re-raised when attempts run out or should_stop()
    turns true.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as e:
            if attempt >= attempts or (should_stop and should_stop()):
                logger.warning("%s failed after %s attempt(s): %s", description, attempt, e)
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.info("%s failed (attempt %s/%s), retrying in %.2fs: %s", description, attempt, attempts, delay, e)
            sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
