"""Generic polling with an explicit retry policy.

The sleep function is injectable so callers and tests can run the loop
without real delays.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from komodo_deploy.utils.logging import get_logger

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how long to poll."""

    max_attempts: int = 20
    interval: float = 30.0

    @property
    def budget_seconds(self) -> float:
        return self.max_attempts * self.interval


@dataclass
class PollResult(Generic[T]):
    """Outcome of :func:`poll_until`."""

    value: T | None
    attempts: int
    done: bool


async def poll_until(
    probe: Callable[[int], Awaitable[T]],
    is_done: Callable[[T], bool],
    policy: RetryPolicy,
    *,
    sleep: SleepFn = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "poll",
) -> PollResult[T]:
    """Call ``probe`` until ``is_done`` accepts its value or attempts run out.

    ``probe`` receives the 1-based attempt number. Exceptions listed in
    ``retry_on`` are logged and retried, except on the final attempt where
    they propagate. Anything ``is_done`` raises propagates immediately.
    There is no wait after the final attempt.
    """
    value: T | None = None
    for attempt in range(1, policy.max_attempts + 1):
        last = attempt >= policy.max_attempts
        try:
            value = await probe(attempt)
        except retry_on as e:
            if last:
                raise
            logger.warning(
                f"{label}.probe_failed",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                error=str(e),
            )
            await sleep(policy.interval)
            continue

        if is_done(value):
            return PollResult(value=value, attempts=attempt, done=True)

        if not last:
            await sleep(policy.interval)

    return PollResult(value=value, attempts=policy.max_attempts, done=False)
