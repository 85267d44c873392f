# zkwallet/ledger/retry.py
import logging
import time
from typing import Callable, TypeVar

from zkwallet.core.errors import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    max_retries: int = 3,
    backoff: float = 0.5,
    description: str = "ledger call",
    retry_timeouts: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run fn, retrying up to max_retries times on NetworkError.

    Waits backoff * 2**attempt between attempts (0.5s, 1s, 2s with the defaults).
    Any other exception propagates on the first occurrence: a ledger
    rejection is an authoritative answer, not a transient fault.
    With retry_timeouts=False a timed-out request is not repeated, since
    the server may already have acted on it.
    """
    attempts = max(0, max_retries) + 1
    for attempt in range(attempts):
        try:
            return fn()
        except NetworkError as e:
            if e.timed_out and not retry_timeouts:
                logger.error("%s timed out, not retrying: %s", description, e)
                raise
            if attempt == attempts - 1:
                logger.error("%s failed after %d attempts: %s", description, attempts, e)
                raise
            wait_time = backoff * (2 ** attempt)
            logger.warning(
                "%s: network error (attempt %d/%d), retrying in %.1fs: %s",
                description, attempt + 1, attempts, wait_time, e,
            )
            sleep(wait_time)
    raise AssertionError("unreachable")
