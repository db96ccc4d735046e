"""Conjunctive fan-out over a fixed load balancer set, and the fixed-interval poll loop."""

from __future__ import annotations

import concurrent.futures as cf
import logging
import time
from typing import Callable, Sequence

from ..exceptions import PollTimeoutError
from ..models import LogContext

logger = logging.getLogger(__name__)

# predicate(instance_id, load_balancer, ctx) -> bool
Predicate = Callable[[str, str, LogContext], bool]


def evaluate_all(
    predicate: Predicate,
    instance_id: str,
    load_balancers: Sequence[str],
    ctx: LogContext | None = None,
    max_workers: int = 1,
) -> list[bool]:
    """Invoke predicate once for every load balancer and return the results in set order.

    With max_workers > 1 the calls run on a thread pool; all of them are
    joined before returning.
    """
    ctx = ctx or LogContext()
    if max_workers <= 1 or len(load_balancers) <= 1:
        return [predicate(instance_id, lb, ctx.bind(load_balancer=lb)) for lb in load_balancers]

    with cf.ThreadPoolExecutor(max_workers=min(max_workers, len(load_balancers))) as pool:
        futures = [
            pool.submit(predicate, instance_id, lb, ctx.bind(load_balancer=lb))
            for lb in load_balancers
        ]
        return [f.result() for f in futures]


def all_satisfy(
    predicate: Predicate,
    instance_id: str,
    load_balancers: Sequence[str],
    ctx: LogContext | None = None,
    max_workers: int = 1,
) -> bool:
    """AND of predicate over every load balancer. Never short-circuits; False for an empty set."""
    if not load_balancers:
        return False
    results = evaluate_all(predicate, instance_id, load_balancers, ctx, max_workers)
    return all(results)


def poll_until(
    check: Callable[[], bool],
    phase: str,
    interval: float,
    timeout: float = 0,
    ctx: LogContext | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> float:
    """Call check every `interval` seconds until it returns True; return the elapsed time.

    A timeout of 0 waits forever. Otherwise PollTimeoutError is raised once
    the budget is spent without check succeeding.
    """
    extra = (ctx or LogContext()).bind(phase=phase).extra
    start = clock()
    attempt = 0

    while True:
        attempt += 1
        if check():
            elapsed = clock() - start
            logger.info(
                "Condition met after %d attempt(s)", attempt,
                extra={**extra, "elapsed_seconds": round(elapsed, 2)},
            )
            return elapsed

        elapsed = clock() - start
        if timeout and elapsed >= timeout:
            logger.error(
                "Giving up after %d attempt(s)", attempt,
                extra={**extra, "elapsed_seconds": round(elapsed, 2)},
            )
            raise PollTimeoutError(phase, elapsed)

        delay = interval if not timeout else min(interval, timeout - elapsed)
        logger.debug("Condition not met (attempt %d), retrying in %.1fs", attempt, delay, extra=extra)
        sleep(delay)
