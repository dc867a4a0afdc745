"""
Bounded retry policy shared by clicks, typing and navigation.

A fallible coroutine is attempted a fixed number of times with a constant
delay between attempts. The last failure is re-raised to the caller.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

AttemptCallback = Callable[[int, Optional[BaseException]], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry policy."""

    max_attempts: int = 3
    backoff_ms: int = 1000

    @property
    def attempts(self) -> int:
        """Effective attempt count: anything below one still runs once."""
        if self.max_attempts <= 0:
            return 1
        return self.max_attempts

    def with_attempts(self, max_attempts: Optional[int]) -> "RetryPolicy":
        """Return a copy using ``max_attempts`` unless it is None."""
        if max_attempts is None:
            return self
        return replace(self, max_attempts=max_attempts)


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_attempt: Optional[AttemptCallback] = None,
) -> T:
    """
    Run ``operation`` under ``policy``.

    Args:
        operation: Coroutine factory receiving the 1-based attempt number
        policy: Attempt budget and constant backoff
        retry_on: Exception types that consume an attempt; others propagate
        on_attempt: Called after each attempt with the error, or None on success

    Returns:
        The result of the first successful attempt

    Raises:
        The exception of the last attempt once the budget is exhausted
    """
    total = policy.attempts

    for attempt in range(1, total + 1):
        try:
            result = await operation(attempt)
        except retry_on as e:
            if on_attempt is not None:
                on_attempt(attempt, e)
            if attempt == total:
                raise
            await asyncio.sleep(policy.backoff_ms / 1000)
            continue

        if on_attempt is not None:
            on_attempt(attempt, None)
        return result

    # unreachable: the loop either returns or raises
    raise RuntimeError("retry loop exited without a result")
