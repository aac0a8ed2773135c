"""Data availability network interface and environment helpers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chainharness.types.da_node import DANode


@runtime_checkable
class DataAvailabilityNetwork(Protocol):
    """A network of bridge, full and light DA nodes."""

    @property
    def bridge_nodes(self) -> Sequence[DANode]:
        """Bridge nodes of the network."""
        ...

    @property
    def full_nodes(self) -> Sequence[DANode]:
        """Full nodes of the network."""
        ...

    @property
    def light_nodes(self) -> Sequence[DANode]:
        """Light nodes of the network."""
        ...


def build_celestia_custom_env_var(chain_id: str, genesis_block_hash: str, p2p_address: str) -> str:
    """Build the CELESTIA_CUSTOM value from chain id, genesis hash and p2p address."""
    parts = [chain_id]
    parts.extend(part for part in (genesis_block_hash, p2p_address) if part)
    return ":".join(parts)