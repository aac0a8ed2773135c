"""Helpers that wait for chains and nodes to reach heights or conditions."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from chainharness.types.da_node import DANode

_DA_POLL_INTERVAL = 1.0


@runtime_checkable
class Heighter(Protocol):
    """Anything that reports a current block height."""

    async def height(self) -> int:
        """Current block height."""
        ...


async def _gather_first_error(coros: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run awaitables concurrently; on the first failure cancel the rest and re-raise it."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    if not tasks:
        return []
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    failed = next(
        (task for task in tasks if task in done and not task.cancelled() and task.exception() is not None),
        None,
    )
    if failed is not None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise failed.exception()  # type: ignore[misc]
    return [task.result() for task in tasks]


@dataclass
class _HeightTracker:
    chain: Heighter
    starting: int = 0
    current: int = 0

    @property
    def delta(self) -> int:
        if self.starting == 0:
            return 0
        return self.current - self.starting

    def update(self, height: int) -> None:
        if self.starting == 0:
            self.starting = height
        self.current = height

    async def for_delta(self, delta: int) -> None:
        while self.delta < delta:
            current = await self.chain.height()
            # Height 0 is never valid; the chain is expected to report a real height eventually.
            if current != 0:
                self.update(current)
            await asyncio.sleep(0)


async def for_blocks(delta: int, *chains: Heighter) -> None:
    """Wait until every chain has advanced by at least ``delta`` blocks.

    A chain whose height never increases makes this wait forever.
    """
    if not chains:
        raise ValueError("missing chains")
    await _gather_first_error(_HeightTracker(chain).for_delta(delta) for chain in chains)


def for_blocks_until(max_blocks: int, fn: Callable[[int], Any]) -> None:
    """Call ``fn(i)`` for i in 0..max_blocks-1 until it succeeds.

    The error of the last attempt is raised if no attempt succeeds.
    """
    for attempt in range(max_blocks):
        try:
            fn(attempt)
        except Exception:
            if attempt == max_blocks - 1:
                raise
        else:
            return


async def for_nodes_in_sync(chain: Heighter, nodes: Sequence[Heighter]) -> None:
    """Raise RuntimeError unless every node is at or above the chain's height."""
    chain_height, *node_heights = await _gather_first_error(
        [chain.height(), *(node.height() for node in nodes)]
    )
    for node_height in node_heights:
        if node_height < chain_height:
            raise RuntimeError(f"node is not yet in sync: {node_height} < {chain_height}")


async def for_in_sync(chain: Heighter, *nodes: Heighter) -> None:
    """Wait until all nodes have caught up with the chain height."""
    if not nodes:
        raise ValueError("missing nodes")
    while True:
        try:
            await for_nodes_in_sync(chain, nodes)
        except Exception:
            await asyncio.sleep(0)
            continue
        return


async def _check(fn: Callable[[], Any]) -> bool:
    try:
        result = fn()
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise RuntimeError(f"error checking condition: {exc}") from exc
    return bool(result)


async def for_condition(
    timeout_after: float,
    polling_interval: float,
    fn: Callable[[], bool | Awaitable[bool]],
) -> None:
    """Poll ``fn`` every ``polling_interval`` seconds until it returns true.

    Raises TimeoutError after ``timeout_after`` seconds and RuntimeError if ``fn`` fails.
    """
    try:
        async with asyncio.timeout(timeout_after):
            while True:
                await asyncio.sleep(polling_interval)
                if await _check(fn):
                    return
    except TimeoutError as exc:
        raise TimeoutError(f"condition not met within {timeout_after:.2f} seconds") from exc


async def for_da_node_to_reach_height(node: DANode, target_height: int, timeout: float) -> None:
    """Wait up to ``timeout`` seconds for ``node`` to report a header at ``target_height``."""
    try:
        async with asyncio.timeout(timeout):
            while True:
                await asyncio.sleep(_DA_POLL_INTERVAL)
                try:
                    header = await node.get_header(target_height)
                except Exception:
                    continue
                if header.height >= target_height:
                    return
    except TimeoutError as exc:
        raise TimeoutError(f"timed out waiting for node to reach height {target_height}") from exc