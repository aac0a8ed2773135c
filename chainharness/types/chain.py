"""Interfaces for chains, chain nodes, broadcasters and providers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from chainharness.types.wallet import Wallet

if TYPE_CHECKING:
    from chainharness.types.da_network import DataAvailabilityNetwork


@runtime_checkable
class ChainNode(Protocol):
    """A single node of a chain, either a validator or a full node."""

    @property
    def type(self) -> str:
        """Node kind: "val" for validators, "fn" for full nodes."""
        ...

    def rpc_client(self) -> Any:
        """Return an RPC client connected to this node."""
        ...

    async def internal_peer_address(self) -> str:
        """Peer address resolvable inside the network."""
        ...

    async def internal_rpc_address(self) -> str:
        """RPC address resolvable inside the network."""
        ...

    async def internal_host_name(self) -> str:
        """Host name resolvable inside the network."""
        ...


@runtime_checkable
class Broadcaster(Protocol):
    """Something that can sign and broadcast messages for arbitrary wallets."""

    async def broadcast_messages(self, signing_wallet: Wallet, *msgs: Any) -> Any:
        """Broadcast the messages signed by ``signing_wallet``; return the tx response."""
        ...

    async def broadcast_blob_message(self, signing_wallet: Wallet, msg: Any, *blobs: Any) -> Any:
        """Broadcast ``msg`` wrapped together with ``blobs`` as a blob transaction."""
        ...


@runtime_checkable
class Chain(Broadcaster, Protocol):
    """A running (or startable) chain made up of one or more nodes."""

    async def height(self) -> int:
        """Current block height."""
        ...

    async def start(self) -> None:
        """Start the chain."""
        ...

    async def stop(self) -> None:
        """Stop the chain."""
        ...

    @property
    def host_rpc_address(self) -> str:
        """RPC address reachable from the test runner."""
        ...

    @property
    def grpc_address(self) -> str:
        """Internal gRPC address."""
        ...

    @property
    def volume_name(self) -> str:
        """Name of the docker volume the chain nodes are mounted to."""
        ...

    @property
    def nodes(self) -> Sequence[ChainNode]:
        """All nodes of the chain."""
        ...

    async def add_node(self, overrides: Mapping[str, Any] | None = None) -> None:
        """Add a full node, applying ``overrides`` to its config files before start."""
        ...

    async def create_wallet(self, key_name: str) -> Wallet:
        """Create a wallet with the given key name."""
        ...

    async def upgrade_version(self, version: str) -> None:
        """Upgrade the chain to ``version``."""
        ...

    @property
    def faucet_wallet(self) -> Wallet:
        """The wallet used to fund others."""
        ...


@runtime_checkable
class Provider(Protocol):
    """Provisions chains and data availability networks on some backend."""

    async def get_chain(self) -> Chain:
        """Return a new chain."""
        ...

    async def get_data_availability_network(self) -> DataAvailabilityNetwork:
        """Return a new data availability network."""
        ...