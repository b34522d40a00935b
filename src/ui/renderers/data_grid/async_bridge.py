"""Run grid coroutines from Streamlit's synchronous callbacks."""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")

BRIDGE_TIMEOUT_SECONDS = 600


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive ``coro`` to completion whether or not a loop is already running."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop (script thread, CLI) - safe to use asyncio.run()
        return asyncio.run(coro)

    # Inside a running loop - finish the coroutine on a private loop
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result(timeout=BRIDGE_TIMEOUT_SECONDS)
