from typing import Optional


class CipherBreakerError(Exception):
    """Base class for every error raised by the attack engines."""


class LengthMismatch(CipherBreakerError, ValueError):
    """Two buffers that must be the same length are not."""


class OutOfRange(CipherBreakerError, ValueError):
    """Chunking or ranking parameters need more data than is available."""


class ShapeMismatch(CipherBreakerError, ValueError):
    """Chunks handed to the transposition engine differ in length."""


class InvalidPadding(CipherBreakerError, ValueError):
    """Decrypted data does not end in valid PKCS#7 padding."""


class SolutionNotFound(CipherBreakerError, LookupError):
    """An oracle ciphertext block has no entry in the solution map."""

    def __init__(self, position: int, block_hex: str, message: Optional[str] = None):
        self.position = position
        self.block_hex = block_hex
        super().__init__(
            message or f"ciphertext block {block_hex} not in solution map at secret position {position}"
        )


class OracleError(CipherBreakerError, RuntimeError):
    """The encryption oracle behaved in a way the attack cannot work with."""


class NotEcbError(OracleError):
    """The oracle does not encrypt identical blocks identically."""


class RandomnessError(OracleError):
    """The system random source returned fewer bytes than requested."""
