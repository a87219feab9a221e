from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OracleProfile:
    """What interrogating an ECB oracle revealed about its hidden layout."""

    block_size: int
    prefix_length: int
    secret_length: int

    @property
    def align(self) -> int:
        """Filler bytes needed to finish the prefix's last block."""
        return (self.block_size - self.prefix_length % self.block_size) % self.block_size

    @property
    def base_block(self) -> int:
        """Index of the first ciphertext block fully under attacker control."""
        return (self.prefix_length + self.align) // self.block_size


@dataclass(frozen=True, slots=True)
class RecoverySnapshot:
    """Immutable view of the byte-at-a-time attack, for the UI."""

    state_version: int
    complete: bool
    block_size: int
    prefix_length: int
    secret_length: int
    position: int
    queries: int
    recovered: bytes = b""

    @property
    def block_count(self) -> int:
        return -(-self.secret_length // self.block_size) if self.block_size else 0
