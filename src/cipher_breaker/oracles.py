"""Encryption oracles for exercising the ECB attacks.

Every oracle is a callable object: `oracle(data) -> ciphertext`, which is
the only interface the attack engines rely on.
"""
import os
import secrets
from typing import Optional, Tuple

import requests
import structlog

from cipher_breaker.crypto import BlockCipher, CipherMode, CipherSuite
from cipher_breaker.errors import OracleError, RandomnessError
from cipher_breaker.utils import b64_decode, b64_encode


log = structlog.get_logger()

AES_KEY_SIZES = (16, 24, 32)
MAX_PREFIX_LEN = 128
DETECTION_PAD_MIN = 5
DETECTION_PAD_MAX = 10

DEMO_SECRET_B64 = (
    "Um9sbGluJyBpbiBteSA1LjAKV2l0aCBteSByYWctdG9wIGRvd24gc28gbXkg"
    "aGFpciBjYW4gYmxvdwpUaGUgZ2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBq"
    "dXN0IHRvIHNheSBoaQpEaWQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUg"
    "YnkK"
)


def random_bytes(n: int) -> bytes:
    """n bytes from the OS random source. A short read is an error, never retried."""
    if n < 0:
        raise ValueError(f"byte count must not be negative, got {n}")
    data = os.urandom(n)
    if len(data) != n:
        raise RandomnessError(f"error generating {n} random bytes, got {len(data)}")
    return data


def random_between(low: int, high: int) -> int:
    """Uniform integer in [low, high]."""
    return low + secrets.randbelow(high - low + 1)


class EcbSuffixOracle:
    """Encrypts `[prefix] || data || secret` under one random key, in ECB mode.
    With no suite given, the AES key size is picked at random (the block size
    is 16 either way). The key and prefix are fixed for the oracle's lifetime."""

    def __init__(self, secret: bytes, *, suite: Optional[CipherSuite] = None, with_prefix: bool = False):
        if suite is None:
            suite = CipherSuite.for_aes(secrets.choice(AES_KEY_SIZES), CipherMode.ECB)
        suite = CipherSuite(suite)
        if suite.mode is not CipherMode.ECB:
            raise ValueError(f"{suite} is not an ECB suite")

        self.secret = bytes(secret)
        self.prefix = random_bytes(secrets.randbelow(MAX_PREFIX_LEN)) if with_prefix else b""
        self._cipher = BlockCipher(suite, random_bytes(suite.key_size))
        self.queries = 0

    @property
    def block_size(self) -> int:
        return self._cipher.block_size

    def __call__(self, data: bytes) -> bytes:
        return self.encrypt(data)

    def encrypt(self, data: bytes) -> bytes:
        self.queries += 1
        return self._cipher.encrypt(self.prefix + bytes(data) + self.secret)


class ModeDetectionOracle:
    """Each call picks a fresh random key and either ECB or CBC, and wraps the
    input in 5-10 random bytes on each side. encrypt_with_mode reports the mode
    alongside its ciphertext; last_mode only suits single-threaded callers."""

    def __init__(self, key_size: int = 16):
        if key_size not in AES_KEY_SIZES:
            raise ValueError(f"Invalid AES key size: {key_size}")
        self.key_size = key_size
        self.last_mode: Optional[CipherMode] = None

    def __call__(self, data: bytes) -> bytes:
        return self.encrypt(data)

    def encrypt(self, data: bytes) -> bytes:
        mode, ciphertext = self.encrypt_with_mode(data)
        self.last_mode = mode
        return ciphertext

    def encrypt_with_mode(self, data: bytes) -> Tuple[CipherMode, bytes]:
        mode = secrets.choice([CipherMode.ECB, CipherMode.CBC])
        suite = CipherSuite.for_aes(self.key_size, mode)
        iv = random_bytes(suite.block_size) if mode is CipherMode.CBC else None
        cipher = BlockCipher(suite, random_bytes(self.key_size), iv)

        before = random_bytes(random_between(DETECTION_PAD_MIN, DETECTION_PAD_MAX))
        after = random_bytes(random_between(DETECTION_PAD_MIN, DETECTION_PAD_MAX))
        log.debug("mode detection oracle", mode=str(mode))
        return mode, cipher.encrypt(before + bytes(data) + after)


class HttpOracle:
    """Client for an oracle served by the demo API (or anything speaking the same JSON)."""

    def __init__(self, url: str, *, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.queries = 0

    def __call__(self, data: bytes) -> bytes:
        return self.encrypt(data)

    def encrypt(self, data: bytes) -> bytes:
        self.queries += 1
        payload = {"plaintext_b64": b64_encode(data)}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise OracleError(f"Request to {self.url} failed: {e}") from e
        if response.status_code != 200:
            raise OracleError(f"Failed to encrypt via {self.url}: {response.status_code} {response.text}")
        return b64_decode(response.json()["ciphertext_b64"])
