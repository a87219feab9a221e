from typing import Optional, Tuple

from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.max_accumulator import max_scored
from cipher_breaker.models.candidates import Trial
from cipher_breaker.scoring import ScoreFn, english_score
from cipher_breaker.xor import xor_cipher


def single_byte_trials(stream: bytes) -> list[Trial]:
    """One trial decryption per possible key byte, 0x00 through 0xff."""
    return [Trial(payload=xor_cipher(stream, key), key=bytes([key])) for key in range(256)]


def best_single_byte_key(
    stream: bytes,
    scoring_oracle: ScoreFn = english_score,
    *,
    cancel: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> Tuple[int, float]:
    """Find the key byte whose XOR with stream scores highest.
    Exact score ties resolve to the lowest byte value."""
    best = max_scored(
        single_byte_trials(stream),
        scoring_oracle,
        cancel=cancel,
        max_workers=max_workers,
    )
    if best is None:
        # Cancelled before anything was scored.
        return 0, scoring_oracle(b"")
    return best.key[0], best.score
