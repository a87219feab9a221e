from __future__ import annotations
from dataclasses import dataclass, field
from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class Scoreable(Protocol):
    """Anything the max accumulator can score: a payload plus the key that produced it."""

    def payload_bytes(self) -> bytes: ...

    def key_material(self) -> bytes: ...


@dataclass(frozen=True, slots=True)
class Trial:
    """An unscored candidate decryption."""

    payload: bytes
    key: bytes

    def payload_bytes(self) -> bytes:
        return self.payload

    def key_material(self) -> bytes:
        return self.key


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    payload: bytes
    key: bytes
    score: float

    def payload_bytes(self) -> bytes:
        return self.payload

    def key_material(self) -> bytes:
        return self.key

    @property
    def tiebreak(self) -> Tuple[int, bytes]:
        # Shorter key first, then lowest byte values.
        return (len(self.key), self.key)

    def beats(self, other: ScoredCandidate | None) -> bool:
        """Strictly better score, or an exact tie won on the tiebreak key."""
        if other is None:
            return True
        if self.score > other.score:
            return True
        return self.score == other.score and self.tiebreak < other.tiebreak


@dataclass(slots=True)
class KeyLengthCandidate:
    """A key length hypothesis. recovered_key is filled column by column."""

    length: int
    score: float
    recovered_key: bytearray = field(default_factory=bytearray)

    def __post_init__(self):
        if self.length < 1:
            raise ValueError(f"key length must be positive, got {self.length}")
        if not self.recovered_key:
            self.recovered_key = bytearray(self.length)
        elif len(self.recovered_key) != self.length:
            raise ValueError(f"recovered_key length {len(self.recovered_key)} != length {self.length}")

    def set_key_byte(self, column: int, value: int) -> None:
        if not 0 <= column < self.length:
            raise IndexError(f"column {column} out of range for key length {self.length}")
        self.recovered_key[column] = value & 0xFF


@dataclass(frozen=True, slots=True)
class VigenereResult:
    plaintext: bytes
    key: bytes
    score: float
    # One entry per evaluated key length, in rank order.
    candidates: Tuple[ScoredCandidate, ...] = field(default_factory=tuple)
