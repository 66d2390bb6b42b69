"""
Bounded retry-on-conflict loop.

Every read-modify-write against the store runs inside retry_on_conflict:
the callable re-reads the resource, recomputes its change and submits it
tagged with the version it read. A ConflictError restarts from the read after
an exponentially growing, jittered pause. Any other exception propagates
immediately. When the budget is spent the last ConflictError is re-raised.
"""
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from curation_operator.config import settings
from curation_operator.errors import ConflictError

logger = logging.getLogger("curation.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class Backoff:
    steps: int = settings.RETRY_STEPS
    delay: float = settings.RETRY_BASE_DELAY
    factor: float = settings.RETRY_FACTOR
    jitter: float = settings.RETRY_JITTER

    def delays(self):
        """Yield the pause before each retry (steps - 1 values)."""
        delay = self.delay
        for _ in range(self.steps - 1):
            yield delay + delay * self.jitter * random.random()
            delay *= self.factor


DEFAULT_BACKOFF = Backoff()


def retry_on_conflict(fn: Callable[[], T], backoff: Backoff = DEFAULT_BACKOFF,
                      sleep: Callable[[float], None] = time.sleep) -> T:
    delays = backoff.delays()
    attempt = 1
    while True:
        try:
            return fn()
        except ConflictError as e:
            pause = next(delays, None)
            if pause is None:
                logger.warning(f"Conflict persisted after {attempt} attempts: {e}")
                raise
            logger.debug(f"Conflict on attempt {attempt}/{backoff.steps}, retrying in {pause:.3f}s: {e}")
            sleep(pause)
            attempt += 1
