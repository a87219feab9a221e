"""Byte-at-a-time recovery of a secret appended by an ECB encryption oracle.

The oracle encrypts `prefix || attacker_input || secret` under a fixed key.
Interrogation learns the block size, confirms ECB and measures the prefix.
Then every secret byte is pushed to the end of a block by filler bytes and
matched against a table of all 256 possible endings of that block.
"""
from typing import Dict, Optional, Tuple, TypeAlias

import structlog

from cipher_breaker.algorithm.ecb_detect import detect_ecb
from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.state_queue import SingleSlotQueue
from cipher_breaker.errors import NotEcbError, OracleError, SolutionNotFound
from cipher_breaker.models.recovery import OracleProfile, RecoverySnapshot
from cipher_breaker.utils import EncryptFn


log = structlog.get_logger()

DEFAULT_FILLER = b"A"
DEFAULT_MAX_PROBE = 512

SolutionMap: TypeAlias = Dict[str, int]


def _block(ciphertext: bytes, index: int, block_size: int) -> bytes:
    return ciphertext[index * block_size:(index + 1) * block_size]


def discover_block_size(oracle: EncryptFn, filler: bytes = DEFAULT_FILLER, max_probe: int = DEFAULT_MAX_PROBE) -> Tuple[int, int]:
    """Grow the input one byte at a time until the ciphertext gets longer.

    Returns (block_size, fixed_length) where fixed_length is the number of
    bytes the oracle adds itself (prefix plus secret).
    """
    base = len(oracle(b""))
    for n in range(1, max_probe + 1):
        length = len(oracle(filler * n))
        if length != base:
            block_size = length - base
            fixed_length = base - n
            log.debug("discovered block size", block_size=block_size, fixed_length=fixed_length)
            return block_size, fixed_length
    raise OracleError(f"ciphertext length never changed within {max_probe} input bytes")


def confirm_ecb(oracle: EncryptFn, block_size: int, filler: bytes = DEFAULT_FILLER) -> None:
    """Raise NotEcbError unless three blocks of filler produce a repeated ciphertext block."""
    score, offsets = detect_ecb(oracle(filler * (3 * block_size)), block_size)
    if score == 0:
        raise NotEcbError("identical plaintext blocks did not encrypt identically; oracle is not ECB")
    log.debug("confirmed ECB", offsets=list(offsets.values()))


def discover_prefix_length(oracle: EncryptFn, block_size: int, filler: bytes = DEFAULT_FILLER) -> int:
    """Measure how many bytes the oracle puts before the attacker input."""
    first_a, first_b = oracle(b"A"), oracle(b"B")
    blocks = min(len(first_a), len(first_b)) // block_size
    block_index = next(
        (i for i in range(blocks) if _block(first_a, i, block_size) != _block(first_b, i, block_size)),
        None,
    )
    if block_index is None:
        raise OracleError("different inputs produced identical ciphertext")

    # The probe byte leaves the prefix's block once the filler completes it.
    for pad in range(1, block_size + 1):
        with_a = _block(oracle(filler * pad + b"A"), block_index, block_size)
        with_b = _block(oracle(filler * pad + b"B"), block_index, block_size)
        if with_a == with_b:
            return block_index * block_size + block_size - pad
    raise OracleError(f"could not align input to block {block_index}")


def interrogate(oracle: EncryptFn, filler: bytes = DEFAULT_FILLER, max_probe: int = DEFAULT_MAX_PROBE) -> OracleProfile:
    """Work out the oracle's block size, mode, prefix length and secret length."""
    block_size, fixed_length = discover_block_size(oracle, filler, max_probe)
    confirm_ecb(oracle, block_size, filler)
    prefix_length = discover_prefix_length(oracle, block_size, filler)
    secret_length = fixed_length - prefix_length
    if secret_length < 0:
        raise OracleError(f"prefix length {prefix_length} exceeds the fixed length {fixed_length}")

    profile = OracleProfile(block_size, prefix_length, secret_length)
    log.info(
        "interrogated oracle",
        block_size=block_size,
        prefix_length=prefix_length,
        secret_length=secret_length,
    )
    return profile


class EcbByteRecovery:
    def __init__(
        self,
        oracle: EncryptFn,
        *,
        filler: bytes = DEFAULT_FILLER,
        max_probe: int = DEFAULT_MAX_PROBE,
        state_queue: Optional[SingleSlotQueue[RecoverySnapshot]] = None,
        cancel: Optional[CancelToken] = None,
    ):
        if len(filler) != 1:
            raise ValueError("filler must be a single byte")
        self._oracle = oracle
        self.filler = filler
        self.max_probe = max_probe
        self.state_queue = state_queue
        self.cancel = cancel
        self.queries = 0
        self.profile: Optional[OracleProfile] = None
        self._version = 0

    def _query(self, data: bytes) -> bytes:
        self.queries += 1
        return self._oracle(data)

    def _publish(self, position: int, recovered: bytes, complete: bool = False) -> None:
        if self.state_queue is None or self.profile is None:
            return
        self._version += 1
        self.state_queue.publish(RecoverySnapshot(
            state_version=self._version,
            complete=complete,
            block_size=self.profile.block_size,
            prefix_length=self.profile.prefix_length,
            secret_length=self.profile.secret_length,
            position=position,
            queries=self.queries,
            recovered=recovered,
        ))

    def solution_map(self, window: bytes) -> SolutionMap:
        """Ciphertext of `window + b` for every byte b, keyed by the target block's hex."""
        profile = self.profile
        lead = self.filler * profile.align
        solutions: SolutionMap = {}
        for candidate in range(256):
            ciphertext = self._query(lead + window + bytes([candidate]))
            key = _block(ciphertext, profile.base_block, profile.block_size).hex()
            if key in solutions:
                raise OracleError(
                    f"bytes {solutions[key]:#04x} and {candidate:#04x} encrypt to the same block; "
                    "the oracle is not deterministic ECB"
                )
            solutions[key] = candidate
        return solutions

    def recover_byte(self, position: int, recovered: bytes, aligned: Dict[int, bytes]) -> int:
        """Recover the secret byte at `position` given every byte before it.
        `aligned` caches the oracle's answer for each filler length."""
        profile = self.profile
        bs = profile.block_size
        pad_len = (bs - 1) - (position % bs)
        window = (self.filler * pad_len + recovered)[-(bs - 1):] if bs > 1 else b""
        solutions = self.solution_map(window)

        if pad_len not in aligned:
            aligned[pad_len] = self._query(self.filler * (profile.align + pad_len))
        target = _block(aligned[pad_len], profile.base_block + position // bs, bs).hex()
        try:
            return solutions[target]
        except KeyError:
            raise SolutionNotFound(position, target) from None

    def recover(self) -> bytes:
        """Interrogate the oracle and decode its whole secret."""
        self.profile = interrogate(self._query, self.filler, self.max_probe)
        recovered = bytearray()
        aligned: Dict[int, bytes] = {}
        self._publish(0, bytes(recovered))

        for position in range(self.profile.secret_length):
            if self.cancel is not None and self.cancel.cancelled:
                log.warning("recovery cancelled", recovered=len(recovered), secret_length=self.profile.secret_length)
                return bytes(recovered)
            recovered.append(self.recover_byte(position, bytes(recovered), aligned))
            self._publish(position + 1, bytes(recovered))

        self._publish(len(recovered), bytes(recovered), complete=True)
        log.info("recovered secret", secret_length=len(recovered), queries=self.queries)
        return bytes(recovered)
