import dataclasses

import pytest

from chainharness.docker.wallet import Wallet
from chainharness.testutil.sdkacc import address_from_wallet, address_to_bech32
from chainharness.types.wallet import Wallet as WalletProtocol


def test_wallet_fields_and_protocol():
    wallet = Wallet(b"\x01\x02", "celestia1abc", "celestia", "validator")
    assert isinstance(wallet, WalletProtocol)
    assert (wallet.address, wallet.formatted_address, wallet.bech32_prefix, wallet.key_name) == (
        b"\x01\x02",
        "celestia1abc",
        "celestia",
        "validator",
    )


def test_wallet_is_immutable():
    wallet = Wallet(b"", "celestia1abc", "celestia", "faucet")
    with pytest.raises(dataclasses.FrozenInstanceError):
        wallet.key_name = "other"  # type: ignore[misc]
    assert wallet.key_name == "faucet"


def test_wallet_address_round_trips():
    raw = bytes(range(20))
    wallet = Wallet(raw, address_to_bech32(raw, "celestia"), "celestia", "user")
    assert address_from_wallet(wallet) == wallet.address


def test_wallet_equality():
    first = Wallet(b"\x05", "celestia1abc", "celestia", "k")
    assert first == Wallet(b"\x05", "celestia1abc", "celestia", "k")
    assert first != dataclasses.replace(first, key_name="other")