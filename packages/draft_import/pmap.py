"""Bounded, order-preserving fan-out over a thread pool.

``p_map(items, mapper, concurrency=K)`` keeps at most ``K`` mapper calls
running, topping the window up as calls finish, and returns results in input
order. Only the calling thread writes into the result slots, so mappers never
share mutable state through this helper.

A mapper exception cancels work that has not started yet and propagates to the
caller unchanged. Callers that want per-item failure capture (the extraction
orchestrator does) catch inside the mapper and return a value instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")

_UNSET = object()


def p_map(
    items: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    """Map ``items`` through ``mapper`` with at most ``concurrency`` calls in flight.

    Parameters
    ----------
    items:
        Inputs; consumed lazily as slots free up.
    mapper:
        Called once per input on a worker thread.
    concurrency:
        Hard cap on simultaneous mapper calls; must be a positive ``int``.

    Returns
    -------
    list
        ``mapper(item)`` for every input, in input order.
    """

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    source = enumerate(items)
    slots: list[object] = []
    pending: dict[Future[OutT], int] = {}

    with ThreadPoolExecutor(max_workers=concurrency) as pool:

        def _fill() -> None:
            while len(pending) < concurrency:
                try:
                    idx, item = next(source)
                except StopIteration:
                    return
                slots.append(_UNSET)
                pending[pool.submit(mapper, item)] = idx

        _fill()
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = pending.pop(fut)
                try:
                    slots[idx] = fut.result()
                except Exception:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
            _fill()

    return slots  # type: ignore[return-value]


__all__ = ["p_map"]
