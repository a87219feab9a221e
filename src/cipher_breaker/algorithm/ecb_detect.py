from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from cipher_breaker.crypto import CipherMode
from cipher_breaker.utils import EncryptFn


log = structlog.get_logger()


def detect_ecb(data: bytes, block_size: int = 16) -> Tuple[float, Dict[str, List[int]]]:
    """Count repeated ciphertext blocks.

    Returns a score (the number of block offsets taking part in a repeat)
    and a map of repeated block hex -> the offsets it appears at, in order.
    A score above zero means the data was very likely encrypted with ECB.
    A trailing partial block is ignored.
    """
    if block_size < 1:
        raise ValueError(f"block size must be positive, got {block_size}")

    seen: Dict[str, int] = {}
    offsets: Dict[str, List[int]] = {}
    score = 0.0
    for index in range(len(data) // block_size):
        block = data[index * block_size:(index + 1) * block_size].hex()
        first = seen.setdefault(block, index)
        if first == index:
            continue

        found = offsets.setdefault(block, [])
        for offset in (first, index):
            if offset not in found:
                found.append(offset)
                score += 1
    return score, offsets


def detect_mode(oracle: EncryptFn, block_size: int = 16) -> CipherMode:
    """Guess whether an oracle encrypts with ECB or CBC.

    Four blocks of identical input guarantee at least two aligned identical
    plaintext blocks whatever random bytes the oracle wraps around them.
    """
    ciphertext = oracle(b"A" * (4 * block_size))
    score, _ = detect_ecb(ciphertext, block_size)
    mode = CipherMode.ECB if score > 0 else CipherMode.CBC
    log.debug("detected mode", mode=str(mode), score=score)
    return mode


def rank_ecb_candidates(ciphertexts: Iterable[bytes], block_size: int = 16) -> Optional[int]:
    """Index of the ciphertext with the most repeated blocks, or None if none repeat.
    Ties keep the earliest index."""
    best_index: Optional[int] = None
    best_score = 0.0
    for index, ciphertext in enumerate(ciphertexts):
        score, _ = detect_ecb(ciphertext, block_size)
        if score > best_score:
            best_index, best_score = index, score
    return best_index
