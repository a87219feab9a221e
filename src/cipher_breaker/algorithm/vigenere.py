"""Repeating-key XOR ("Vigenere") key recovery.

1. Rank candidate key lengths by normalized block distance.
2. For each of the best few lengths, transpose the ciphertext into one
   column per key position and solve each column as single-byte XOR.
3. Decrypt the whole ciphertext with every recovered key and keep the key
   whose plaintext scores best.
"""
from dataclasses import dataclass
from typing import List, Optional

import structlog

from cipher_breaker.algorithm.block_distance import rank_key_lengths
from cipher_breaker.algorithm.single_byte import best_single_byte_key
from cipher_breaker.algorithm.transpose import chunk, transpose
from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.max_accumulator import max_scored
from cipher_breaker.errors import CipherBreakerError
from cipher_breaker.models.candidates import KeyLengthCandidate, ScoredCandidate, Trial, VigenereResult
from cipher_breaker.scoring import ScoreFn, english_score
from cipher_breaker.xor import xor_decrypt


log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class VigenereSettings:
    min_key_len: int = 2
    max_key_len: int = 41
    num_candidate_lengths: int = 5
    num_chunk_pairs: int = 4

    def __post_init__(self):
        if self.num_candidate_lengths < 1:
            raise ValueError("num_candidate_lengths must be at least 1")


def solve_key_bytes(
    ciphertext: bytes,
    candidate: KeyLengthCandidate,
    scorer: ScoreFn = english_score,
    *,
    cancel: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> KeyLengthCandidate:
    """Fill candidate.recovered_key in place, one column at a time."""
    columns = transpose(chunk(ciphertext, candidate.length))
    for column_index, column in enumerate(columns):
        if cancel is not None and cancel.cancelled:
            break
        key_byte, _ = best_single_byte_key(column, scorer, cancel=cancel, max_workers=max_workers)
        candidate.set_key_byte(column_index, key_byte)
    return candidate


def shortest_period(key: bytes) -> bytes:
    """Collapse a key that is a repeat of a shorter one, so b"ICEICE" becomes b"ICE"."""
    n = len(key)
    for period in range(1, n):
        if n % period == 0 and key == key[:period] * (n // period):
            return key[:period]
    return key


def decrypt(
    ciphertext: bytes,
    min_key_len: int = 2,
    max_key_len: int = 41,
    num_candidate_lengths: int = 5,
    num_chunk_pairs_for_ranking: int = 4,
    *,
    scorer: ScoreFn = english_score,
    cancel: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> VigenereResult:
    """
    Recover the key and plaintext of repeating-key XOR ciphertext.
    - Key lengths are searched in [min_key_len, max_key_len).
    - Raises OutOfRange if the ciphertext is too short for the widest length.
    - A key recovered at a multiple of the true length is collapsed to its
      shortest period, and each distinct key is scored once.
    - Ties in the final plaintext score go to the shorter key.
    """
    ranked = rank_key_lengths(ciphertext, min_key_len, max_key_len, num_chunk_pairs_for_ranking)
    shortlisted: List[KeyLengthCandidate] = ranked[:num_candidate_lengths]
    log.info(
        "key length candidates",
        lengths=[c.length for c in shortlisted],
        scores=[round(c.score, 4) for c in shortlisted],
    )

    for candidate in shortlisted:
        solve_key_bytes(ciphertext, candidate, scorer, cancel=cancel, max_workers=max_workers)
        log.debug("recovered candidate key", length=candidate.length, key_hex=candidate.recovered_key.hex())

    keys = list(dict.fromkeys(shortest_period(bytes(c.recovered_key)) for c in shortlisted))
    trials = [Trial(payload=xor_decrypt(ciphertext, key), key=key) for key in keys]
    best = max_scored(trials, scorer, cancel=cancel, max_workers=max_workers)
    if best is None:
        raise CipherBreakerError("key recovery was cancelled before any candidate was scored")

    scored = tuple(ScoredCandidate(payload=t.payload, key=t.key, score=scorer(t.payload)) for t in trials)
    log.info("recovered key", key_length=len(best.key), key_hex=best.key.hex(), score=round(best.score, 4))
    return VigenereResult(plaintext=best.payload, key=best.key, score=best.score, candidates=scored)


class Vigenere:
    """Holds search settings so the same configuration can break many ciphertexts."""

    def __init__(
        self,
        settings: Optional[VigenereSettings] = None,
        *,
        scorer: ScoreFn = english_score,
        max_workers: Optional[int] = None,
    ):
        self.settings = settings or VigenereSettings()
        self.scorer = scorer
        self.max_workers = max_workers

    def rank_key_lengths(self, ciphertext: bytes) -> List[KeyLengthCandidate]:
        s = self.settings
        return rank_key_lengths(ciphertext, s.min_key_len, s.max_key_len, s.num_chunk_pairs)

    def decrypt(self, ciphertext: bytes, *, cancel: Optional[CancelToken] = None) -> VigenereResult:
        s = self.settings
        return decrypt(
            ciphertext,
            s.min_key_len,
            s.max_key_len,
            s.num_candidate_lengths,
            s.num_chunk_pairs,
            scorer=self.scorer,
            cancel=cancel,
            max_workers=self.max_workers,
        )
