"""
Fixed-width keys for feed identifiers.

On-chain feed registries index by bytes32. Short identifiers are stored
verbatim so they stay readable on-chain; anything that does not fit is
replaced by its keccak256 digest.
"""

import re

from eth_utils import keccak

KEY_SIZE = 32

# 31 bytes leaves room for the terminating zero byte
MAX_SHORT_STRING_BYTES = 31

_HEX_STRING = re.compile(r"0x(?:[0-9a-fA-F]{2})*")


def is_hex_string(value: str) -> bool:
    """True if value is 0x-prefixed hex that decodes to whole bytes"""
    return bool(_HEX_STRING.fullmatch(value))


def convert_string_to_bytes32(value: str) -> bytes:
    """
    Convert an identifier into a 32-byte key.

    Hex strings are hashed over their decoded bytes. Strings longer than
    31 characters (or 31 UTF-8 bytes) are hashed over their UTF-8 bytes.
    Everything else is right-padded with zero bytes.

    Args:
        value: Feed identifier, e.g. "ETH" or "0xff61491a..."

    Returns:
        32-byte key
    """
    if is_hex_string(value):
        return keccak(bytes.fromhex(value[2:]))

    encoded = value.encode("utf-8")
    if len(value) > MAX_SHORT_STRING_BYTES or len(encoded) > MAX_SHORT_STRING_BYTES:
        return keccak(encoded)

    return encoded.ljust(KEY_SIZE, b"\x00")
