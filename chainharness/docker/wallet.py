"""Wallet held by docker-backed chains."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Wallet:
    """A key in a chain's keyring together with its address."""

    address: bytes
    formatted_address: str
    bech32_prefix: str
    key_name: str