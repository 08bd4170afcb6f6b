"""Cancellation helpers.

asyncio tasks support cancellation natively, but some primitives (a blocking
console read running on a worker thread, for instance) cannot be interrupted.
``wait_cancellable`` imposes cancellation on those by racing them against the
process-wide cancellation signal and abandoning the loser.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from .errors import OperationCanceledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _consume_abandoned(future: asyncio.Future) -> None:
    """Retrieve the outcome of an abandoned future so asyncio never reports it."""
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug(f"Abandoned operation finished with {type(exc).__name__}: {exc}")


async def wait_cancellable(awaitable: Awaitable[T], cancellation: asyncio.Event) -> T:
    """Wait for an awaitable unless cancellation is signaled first.

    If the cancellation signal wins the race, the awaitable is abandoned (not
    stopped at its source) and its eventual result or exception is discarded.
    When both complete together, the awaitable's result wins.

    Args:
        awaitable: Operation to wait for
        cancellation: Process-wide cancellation signal

    Returns:
        The awaitable's result

    Raises:
        OperationCanceledError: If cancellation was signaled before the
            awaitable completed
    """
    operation = asyncio.ensure_future(awaitable)
    signal_waiter = asyncio.ensure_future(cancellation.wait())

    try:
        done, _ = await asyncio.wait(
            {operation, signal_waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        operation.add_done_callback(_consume_abandoned)
        raise
    finally:
        signal_waiter.cancel()

    if operation in done:
        return operation.result()

    operation.add_done_callback(_consume_abandoned)
    raise OperationCanceledError()
