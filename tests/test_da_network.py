import pytest

from chainharness.types.da_network import build_celestia_custom_env_var


@pytest.mark.parametrize(
    ("chain_id", "genesis_block_hash", "p2p_address", "expected"),
    [
        ("testchain", "", "", "testchain"),
        ("testchain", "hash123", "", "testchain:hash123"),
        ("testchain", "", "p2p.node:12345", "testchain:p2p.node:12345"),
        ("testchain", "hash123", "p2p.node:12345", "testchain:hash123:p2p.node:12345"),
        ("", "", "", ""),
    ],
    ids=["OnlyChainID", "ChainIDAndGenesisBlock", "ChainIDAndP2PAddress", "AllValues", "EmptyValues"],
)
def test_build_celestia_custom_env_var(chain_id, genesis_block_hash, p2p_address, expected):
    assert build_celestia_custom_env_var(chain_id, genesis_block_hash, p2p_address) == expected