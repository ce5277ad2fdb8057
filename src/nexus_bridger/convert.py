"""Address conversions between bech32 chains and EVM call arguments."""

from __future__ import annotations

import hashlib

from bech32 import bech32_decode, bech32_encode, convertbits
from Crypto.Hash import RIPEMD160
from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_typing import HexStr
from web3 import Web3

from .exceptions import InvalidAddressFormatError, ValidationError

WORD_WIDTH = 32


def bech32_to_hex(address: str, width: int = WORD_WIDTH) -> str:
    """Decode a bech32 address and return its payload as zero-padded hex.

    The result is ``0x`` followed by ``2 * width`` hex characters, which is
    the ``bytes32`` form expected by ``transferRemote``.
    """
    hrp, words = bech32_decode(address)
    if hrp is None or words is None:
        raise InvalidAddressFormatError(address)

    payload = convertbits(words, 5, 8, False)
    if payload is None:
        raise InvalidAddressFormatError(address, "Invalid bech32 payload padding")

    if len(payload) > width:
        raise InvalidAddressFormatError(address, f"Payload wider than {width} bytes")

    return "0x" + bytes(payload).hex().rjust(width * 2, "0")


def evm_address_to_bytes32(address: str) -> str:
    """Left-pad an EVM address to a ``bytes32`` hex string."""
    if not Web3.is_address(address):
        raise InvalidAddressFormatError(address, "Invalid EVM address")

    stripped = address.lower().removeprefix("0x")
    return "0x" + stripped.rjust(WORD_WIDTH * 2, "0")


def derive_bech32_address(private_key: str, prefix: str) -> str:
    """Derive the Cosmos-style address controlled by ``private_key``.

    Address = bech32(prefix, RIPEMD160(SHA256(compressed secp256k1 pubkey))).
    """
    if not prefix:
        raise ValidationError("bech32 prefix must not be empty", field="prefix", value=prefix)

    try:
        key_bytes = Web3.to_bytes(hexstr=HexStr(private_key))
        public_key = keys.PrivateKey(key_bytes).public_key
    except (KeyValidationError, ValueError, TypeError) as exc:
        raise ValidationError(
            "Failed to derive public key from private key",
            field="private_key",
            details={"error": str(exc)},
        ) from exc

    sha256_hash = hashlib.sha256(public_key.to_compressed_bytes()).digest()
    ripemd160_hash = RIPEMD160.new(sha256_hash).digest()

    words = convertbits(ripemd160_hash, 8, 5)
    if words is None:  # pragma: no cover - 20 bytes always convert
        raise ValidationError("Failed to convert address payload", field="private_key")
    return bech32_encode(prefix, words)
