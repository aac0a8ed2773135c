"""Data availability node types, start options and the node interface."""

from __future__ import annotations

import enum
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from chainharness.testutil.tomlutil import Toml

# Matches addresses such as /ip4/172.91.0.3/tcp/2121
_P2P_ADDRESS_PATTERN = re.compile(r"/ip4/\d+\.\d+\.\d+\.\d+/tcp/\d+", re.ASCII)


def _first_tcpv4_address(addresses: Sequence[str]) -> str:
    for addr in addresses:
        if _P2P_ADDRESS_PATTERN.fullmatch(addr):
            return addr
    raise ValueError("no /ip4/.../tcp/... address found")


@dataclass
class P2PInfo:
    """Peer id and multiaddresses of a node."""

    peer_id: str
    addresses: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> P2PInfo:
        """Build from the API's JSON object, which uses the keys "ID" and "Addrs"."""
        return cls(peer_id=data.get("ID", ""), addresses=list(data.get("Addrs") or []))

    def get_p2p_address(self) -> str:
        """Combine the first TCP/IPv4 address with the peer id.

        Raises ValueError if no such address is present.
        """
        return f"{_first_tcpv4_address(self.addresses)}/p2p/{self.peer_id}"


@dataclass
class Header:
    """A block header as reported by a DA node."""

    height: int


class DANodeType(enum.Enum):
    """Kind of data availability node."""

    BRIDGE = 0
    LIGHT = 1
    FULL = 2

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class Blob:
    """A blob returned by a DA node."""

    namespace: str
    data: str
    share_version: int
    commitment: str
    index: int


@dataclass
class DANodeStartOptions:
    """Options used when starting a DA node."""

    chain_id: str = ""
    start_arguments: list[str] = field(default_factory=list)
    environment_variables: dict[str, str] = field(default_factory=dict)
    config_modifications: dict[str, Toml] = field(default_factory=dict)


DANodeStartOption = Callable[[DANodeStartOptions], None]


def with_additional_start_arguments(*args: str) -> DANodeStartOption:
    """Set extra arguments passed after "celestia start <type>"."""

    def apply(options: DANodeStartOptions) -> None:
        options.start_arguments = list(args)

    return apply


def with_environment_variables(env_vars: Mapping[str, str]) -> DANodeStartOption:
    """Set the environment variables passed to the node."""

    def apply(options: DANodeStartOptions) -> None:
        options.environment_variables = dict(env_vars)

    return apply


def with_chain_id(chain_id: str) -> DANodeStartOption:
    """Set the chain id."""

    def apply(options: DANodeStartOptions) -> None:
        options.chain_id = chain_id

    return apply


def with_config_modifications(config_modifications: Mapping[str, Toml]) -> DANodeStartOption:
    """Set TOML modifications keyed by config file path."""

    def apply(options: DANodeStartOptions) -> None:
        options.config_modifications = dict(config_modifications)

    return apply


@runtime_checkable
class DANode(Protocol):
    """A bridge, light or full data availability node."""

    async def start(self, *opts: DANodeStartOption) -> None:
        """Start the node with the given options."""
        ...

    async def stop(self) -> None:
        """Stop the node."""
        ...

    @property
    def type(self) -> DANodeType:
        """Kind of node."""
        ...

    async def get_header(self, height: int) -> Header:
        """Header at ``height``."""
        ...

    async def get_all_blobs(self, height: int, namespaces: Sequence[Any]) -> list[Blob]:
        """All blobs at ``height`` in the given namespaces."""
        ...

    @property
    def host_rpc_address(self) -> str:
        """RPC address reachable from the test runner."""
        ...

    async def get_p2p_info(self) -> P2PInfo:
        """Peer id and addresses of the node."""
        ...

    async def modify_config_files(self, config_modifications: Mapping[str, Toml]) -> None:
        """Apply TOML modifications keyed by relative config file path."""
        ...