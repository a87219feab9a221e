from typing import List

import structlog

from cipher_breaker.errors import OutOfRange
from cipher_breaker.models.candidates import KeyLengthCandidate
from cipher_breaker.xor import hamming_distance


log = structlog.get_logger()


def block_distance(data: bytes, chunk_len: int, num_chunk_pairs: int) -> float:
    """
    Average number of differing bits per byte between adjacent chunk pairs.
    - Pairs (chunk[0], chunk[1]), (chunk[2], chunk[3]), ... from the start of data.
    - Lower means chunk_len is more likely a multiple of the repeating key length.
    Raises OutOfRange when data holds fewer than 2 * num_chunk_pairs chunks.
    """
    if chunk_len < 1:
        raise ValueError(f"chunk_len must be at least 1, got {chunk_len}")
    if num_chunk_pairs < 1:
        raise ValueError(f"num_chunk_pairs must be at least 1, got {num_chunk_pairs}")

    needed = 2 * num_chunk_pairs * chunk_len
    if needed > len(data):
        raise OutOfRange(
            f"data length less than 2*pairs*chunk_len ({len(data)} < {needed})"
        )

    total = 0
    for i in range(0, 2 * num_chunk_pairs, 2):
        first = data[i * chunk_len:(i + 1) * chunk_len]
        second = data[(i + 1) * chunk_len:(i + 2) * chunk_len]
        total += hamming_distance(first, second)

    return total / (num_chunk_pairs * chunk_len)


def rank_key_lengths(
    data: bytes,
    min_len: int,
    max_len: int,
    num_chunk_pairs: int,
) -> List[KeyLengthCandidate]:
    """Score every key length in [min_len, max_len), best (lowest) first.
    Exact ties keep the smaller length first."""
    if min_len < 1:
        raise ValueError(f"min_len must be at least 1, got {min_len}")
    if max_len <= min_len:
        raise ValueError(f"max_len must be greater than min_len ({max_len} <= {min_len})")

    candidates = [
        KeyLengthCandidate(length=length, score=block_distance(data, length, num_chunk_pairs))
        for length in range(min_len, max_len)
    ]
    # sorted() is stable and the input is in length order.
    ranked = sorted(candidates, key=lambda c: c.score)
    log.debug("ranked key lengths", top=[(c.length, round(c.score, 4)) for c in ranked[:5]])
    return ranked
