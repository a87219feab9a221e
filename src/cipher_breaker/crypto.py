from enum import Enum
from typing import Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
import structlog

from cipher_breaker.errors import InvalidPadding


log = structlog.get_logger()


class CipherMode(str, Enum):
    ECB = "ECB"
    CBC = "CBC"

    def __str__(self):
        return self.value


class CipherSuite(str, Enum):
    AES_128_CBC = "AES-128-CBC"
    AES_128_ECB = "AES-128-ECB"
    AES_192_CBC = "AES-192-CBC"
    AES_192_ECB = "AES-192-ECB"
    AES_256_CBC = "AES-256-CBC"
    AES_256_ECB = "AES-256-ECB"
    DES3_CBC = "DES3-CBC"
    DES3_ECB = "DES3-ECB"

    def __str__(self):
        return self.value

    @property
    def mode(self) -> CipherMode:
        return CipherMode.ECB if self.value.endswith("ECB") else CipherMode.CBC

    @property
    def key_size(self) -> int:
        match self:
            case CipherSuite.AES_128_CBC | CipherSuite.AES_128_ECB:
                return 16
            case CipherSuite.AES_192_CBC | CipherSuite.AES_192_ECB:
                return 24
            case CipherSuite.AES_256_CBC | CipherSuite.AES_256_ECB:
                return 32
            case CipherSuite.DES3_CBC | CipherSuite.DES3_ECB:
                return 24
            case _:
                raise ValueError(f"Invalid cipher suite: {self}")

    @property
    def block_size(self) -> int:
        if self.value.startswith("DES3"):
            return 8
        return 16

    @classmethod
    def for_aes(cls, key_size: int, mode: CipherMode) -> "CipherSuite":
        return cls(f"AES-{key_size * 8}-{mode.value}")


def add_padding(data: bytes, block_size: int) -> bytes:
    """PKCS#7 pad data up to the next multiple of block_size. Always adds at least one byte."""
    padder = padding.PKCS7(block_size * 8).padder()
    return padder.update(data) + padder.finalize()


def strip_padding(data: bytes, block_size: int) -> bytes:
    """Validate and remove PKCS#7 padding. Raises InvalidPadding on a bad tail."""
    if not data or len(data) % block_size != 0:
        raise InvalidPadding(f"padded data length {len(data)} is not a positive multiple of {block_size}")
    unpadder = padding.PKCS7(block_size * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as e:
        raise InvalidPadding(str(e)) from e


class BlockCipher:
    """ECB or CBC encryption with PKCS#7 padding under a fixed key.
    CBC needs an externally supplied IV of one block."""

    def __init__(self, suite: CipherSuite, key: bytes, iv: Optional[bytes] = None):
        suite = CipherSuite(suite)
        if len(key) != suite.key_size:
            raise ValueError(f"{suite} needs a {suite.key_size} byte key, got {len(key)}")
        if suite.mode is CipherMode.CBC:
            if iv is None:
                raise ValueError(f"{suite} needs an IV")
            if len(iv) != suite.block_size:
                raise ValueError(f"IV must be {suite.block_size} bytes, got {len(iv)}")
        self.suite = suite
        self.key = key
        self.iv = iv

    @property
    def block_size(self) -> int:
        return self.suite.block_size

    @property
    def mode(self) -> CipherMode:
        return self.suite.mode

    def _cipher(self) -> Cipher:
        if self.suite.value.startswith("DES3"):
            algorithm = TripleDES(self.key)
        else:
            algorithm = algorithms.AES(self.key)

        if self.mode is CipherMode.ECB:
            return Cipher(algorithm, modes.ECB())
        return Cipher(algorithm, modes.CBC(self.iv))

    def encrypt(self, plaintext: bytes) -> bytes:
        padded = add_padding(plaintext, self.block_size)
        encryptor = self._cipher().encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, ciphertext: bytes) -> bytes:
        if len(ciphertext) % self.block_size != 0:
            raise InvalidPadding(
                f"ciphertext length {len(ciphertext)} is not a multiple of {self.block_size}"
            )
        decryptor = self._cipher().decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        try:
            return strip_padding(padded, self.block_size)
        except InvalidPadding:
            log.warning("invalid padding", suite=str(self.suite), ciphertext_len=len(ciphertext))
            raise
