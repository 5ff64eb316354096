"""Helpers for running blocking image work off the event loop."""

import asyncio
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking callable in the default thread pool and await its result."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, partial(func, *args))
