from dataclasses import dataclass

import pytest

from chainharness.testutil.address import (
    build_internal_peer_address_list,
    build_internal_rpc_address_list,
)


@dataclass
class FakeNode:
    type: str
    peer: str = ""
    rpc: str = ""
    fail: bool = False

    def rpc_client(self):
        return None

    async def internal_peer_address(self) -> str:
        if self.fail:
            raise OSError("unreachable")
        return self.peer

    async def internal_rpc_address(self) -> str:
        if self.fail:
            raise OSError("unreachable")
        return self.rpc

    async def internal_host_name(self) -> str:
        return self.type


@pytest.mark.asyncio
async def test_peer_address_list_joins_in_order():
    nodes = [
        FakeNode("val", peer="id0@val-0:26656"),
        FakeNode("fn", peer="id1@fn-0:26656"),
    ]
    result = await build_internal_peer_address_list(nodes)
    assert result == ",".join(n.peer for n in nodes)
    assert result.split(",") == ["id0@val-0:26656", "id1@fn-0:26656"]


@pytest.mark.asyncio
async def test_rpc_address_list_joins_in_order():
    nodes = [FakeNode("val", rpc="tcp://val-0:26657"), FakeNode("val", rpc="tcp://val-1:26657")]
    result = await build_internal_rpc_address_list(nodes)
    assert result.split(",") == ["tcp://val-0:26657", "tcp://val-1:26657"]


@pytest.mark.asyncio
async def test_empty_node_list():
    assert await build_internal_peer_address_list([]) == ""
    assert await build_internal_rpc_address_list([]) == ""


@pytest.mark.asyncio
async def test_peer_address_failure_names_node_type():
    nodes = [FakeNode("val", peer="a"), FakeNode("fn", fail=True)]
    with pytest.raises(RuntimeError, match="failed to get peer address from node of type fn: unreachable"):
        await build_internal_peer_address_list(nodes)


@pytest.mark.asyncio
async def test_rpc_address_failure_names_node_type():
    with pytest.raises(RuntimeError, match="failed to get rpc address from node of type val"):
        await build_internal_rpc_address_list([FakeNode("val", fail=True)])