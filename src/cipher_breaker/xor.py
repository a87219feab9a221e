from typing import Union

from cipher_breaker.errors import LengthMismatch
from cipher_breaker.utils import BytesOrText, to_bytes

BytesLike = Union[bytes, bytearray, memoryview]


def fixed_xor(left: BytesLike, right: BytesLike) -> bytes:
    """XOR two equal-length buffers together."""
    if len(left) != len(right):
        raise LengthMismatch(f"buffers must be the same length ({len(left)}, {len(right)})")
    return bytes(a ^ b for a, b in zip(left, right))


def xor_cipher(data: BytesLike, key_byte: int) -> bytes:
    """XOR every byte of data with a single key byte."""
    if not 0 <= key_byte <= 0xFF:
        raise ValueError(f"key byte out of range: {key_byte}")
    return bytes(b ^ key_byte for b in data)


def xor_encrypt(data: BytesLike, key: BytesLike) -> bytes:
    """Repeating-key XOR. The key is cycled to the length of the data."""
    if not key:
        raise ValueError("key must not be empty")
    key_len = len(key)
    return bytes(b ^ key[i % key_len] for i, b in enumerate(data))


# Repeating-key XOR is its own inverse.
xor_decrypt = xor_encrypt


def hamming_distance(left: BytesOrText, right: BytesOrText) -> int:
    """Number of differing bits between two equal-length buffers."""
    left, right = to_bytes(left), to_bytes(right)
    if len(left) != len(right):
        raise LengthMismatch(f"buffers must be the same length ({len(left)}, {len(right)})")
    return sum(bin(a ^ b).count("1") for a, b in zip(left, right))
