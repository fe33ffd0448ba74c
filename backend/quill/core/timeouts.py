"""
Time bounds for awaited operations in request handlers.
"""

import asyncio
from typing import Awaitable, TypeVar

from loguru import logger

from quill.core.errors import OperationTimeoutError

T = TypeVar("T")


async def run_bounded(awaitable: Awaitable[T], seconds: float, operation: str) -> T:
    """
    Await an operation, failing with OperationTimeoutError after `seconds`.

    Args:
        awaitable: Coroutine to run (password hashing, user store call)
        seconds: Upper bound; 0 or less disables the bound
        operation: Name used in logs and the error message

    Raises:
        OperationTimeoutError: The bound was exceeded
    """
    if seconds <= 0:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        logger.error(f"{operation} exceeded {seconds:.1f}s")
        raise OperationTimeoutError(f"{operation} timed out")
