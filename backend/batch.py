"""Bounded fan-out of per-user computations.

Per-user computations are independent, so they run on a thread pool; results
come back in the order of the user ids passed in. A deadline bounds the whole
batch, not individual queries.

On failure or timeout, users still queued are cancelled and never start, but
workers already running are not interrupted: their queries finish and any
snapshot they are writing still commits. Worker threads are not daemons, so
interpreter exit waits for them.
"""
import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, TypeVar

from errors import BatchTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_for_users(
    operation: str,
    user_ids: list[str],
    compute: Callable[[str], T],
    max_workers: int = 4,
    timeout_seconds: float | None = None,
) -> list[T]:
    """Run compute(user_id) for every user and return the results in input order.

    The first failure is re-raised once outstanding work is cancelled. If
    timeout_seconds passes before every user is done, BatchTimeout is raised.
    """
    if not user_ids:
        return []

    started = time.monotonic()
    workers = min(max_workers, len(user_ids))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=operation)
    try:
        futures = [executor.submit(compute, user_id) for user_id in user_ids]
        done, not_done = wait(futures, timeout=timeout_seconds, return_when=FIRST_EXCEPTION)

        for future in done:
            error = future.exception()
            if error is not None:
                logger.error(f"{operation} failed: {str(error)}")
                raise error

        if not_done:
            logger.error(
                f"{operation} exceeded {timeout_seconds}s deadline "
                f"({len(done)}/{len(futures)} users done)"
            )
            raise BatchTimeout(operation, timeout_seconds, len(done), len(futures))

        logger.info(f"{operation} finished for {len(futures)} users in {time.monotonic() - started:.2f}s")
        return [future.result() for future in futures]
    finally:
        # Don't wait for hung workers once the batch has failed or timed out
        executor.shutdown(wait=False, cancel_futures=True)
