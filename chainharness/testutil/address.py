"""Build comma-separated address lists from chain nodes."""

from __future__ import annotations

from collections.abc import Sequence

from chainharness.types.chain import ChainNode


async def build_internal_peer_address_list(nodes: Sequence[ChainNode]) -> str:
    """Join the internal peer addresses of ``nodes`` with commas.

    Raises RuntimeError if a node cannot report its peer address.
    """
    addresses = []
    for node in nodes:
        try:
            addresses.append(await node.internal_peer_address())
        except Exception as exc:
            raise RuntimeError(f"failed to get peer address from node of type {node.type}: {exc}") from exc
    return ",".join(addresses)


async def build_internal_rpc_address_list(nodes: Sequence[ChainNode]) -> str:
    """Join the internal RPC addresses of ``nodes`` with commas.

    Raises RuntimeError if a node cannot report its RPC address.
    """
    addresses = []
    for node in nodes:
        try:
            addresses.append(await node.internal_rpc_address())
        except Exception as exc:
            raise RuntimeError(f"failed to get rpc address from node of type {node.type}: {exc}") from exc
    return ",".join(addresses)