"""The wallet interface shared by chains and the tools that fund them."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Wallet(Protocol):
    """A signing identity known to a chain's keyring."""

    @property
    def key_name(self) -> str:
        """Name of the key in the keyring."""
        ...

    @property
    def formatted_address(self) -> str:
        """Bech32 encoded address of the wallet."""
        ...

    @property
    def bech32_prefix(self) -> str:
        """Human readable part used when encoding the address."""
        ...