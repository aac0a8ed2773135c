"""Convert between raw account addresses and their bech32 form."""

from __future__ import annotations

from collections.abc import Iterable

from chainharness.types.wallet import Wallet

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INDEX = {char: value for value, char in enumerate(_CHARSET)}
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_CHECKSUM_LENGTH = 6
_MAX_LENGTH = 1023
_MAX_ADDRESS_LENGTH = 255


def _polymod(values: Iterable[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATOR):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _convert_bits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    out = []
    max_value = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise ValueError(f"invalid data range: {value}")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & max_value)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        raise ValueError("invalid padding")
    return out


def _encode(hrp: str, data: list[int]) -> str:
    if not hrp or any(not 33 <= ord(c) <= 126 for c in hrp):
        raise ValueError(f"invalid human readable part: {hrp!r}")
    hrp = hrp.lower()
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * _CHECKSUM_LENGTH) ^ 1
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(_CHECKSUM_LENGTH)]
    return hrp + "1" + "".join(_CHARSET[d] for d in data + checksum)


def _decode(text: str) -> tuple[str, list[int]]:
    if len(text) > _MAX_LENGTH:
        raise ValueError(f"invalid bech32 string length {len(text)}")
    if any(not 33 <= ord(c) <= 126 for c in text):
        raise ValueError("invalid character in string")
    if text.lower() != text and text.upper() != text:
        raise ValueError("string not all lowercase or all uppercase")
    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + _CHECKSUM_LENGTH + 1 > len(text):
        raise ValueError("invalid separator index")
    hrp, data_part = text[:separator], text[separator + 1 :]
    try:
        data = [_CHARSET_INDEX[c] for c in data_part]
    except KeyError as exc:
        raise ValueError(f"invalid character not part of charset: {exc.args[0]}") from None
    if _polymod(_hrp_expand(hrp) + data) != 1:
        raise ValueError("invalid checksum")
    return hrp, data[:-_CHECKSUM_LENGTH]


def address_to_bech32(addr: bytes, prefix: str) -> str:
    """Encode raw address bytes as bech32 with the given prefix."""
    return _encode(prefix, _convert_bits(addr, 8, 5, pad=True))


def address_from_wallet(wallet: Wallet) -> bytes:
    """Decode the wallet's bech32 address into raw bytes.

    Raises ValueError for an empty address, a wrong prefix, a malformed string
    or an address of invalid length.
    """
    formatted = wallet.formatted_address
    if not formatted.strip():
        raise ValueError("empty address string is not allowed")
    hrp, data = _decode(formatted)
    if hrp != wallet.bech32_prefix:
        raise ValueError(f"invalid Bech32 prefix; expected {wallet.bech32_prefix}, got {hrp}")
    address = bytes(_convert_bits(data, 5, 8, pad=False))
    if not address:
        raise ValueError("addresses cannot be empty")
    if len(address) > _MAX_ADDRESS_LENGTH:
        raise ValueError(f"address max length is {_MAX_ADDRESS_LENGTH}, got {len(address)}")
    return address