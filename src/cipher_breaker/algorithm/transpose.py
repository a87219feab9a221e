from typing import List, Sequence

from cipher_breaker.errors import ShapeMismatch


def chunk(data: bytes, size: int) -> List[bytes]:
    """Split data into size-byte chunks. A trailing partial chunk is dropped."""
    if size < 1:
        raise ValueError(f"chunk size must be at least 1, got {size}")
    return [bytes(data[i:i + size]) for i in range(0, len(data) - size + 1, size)]


def transpose(chunks: Sequence[bytes]) -> List[bytes]:
    """Column j of the result holds byte j of every chunk, in chunk order."""
    if not chunks:
        return []

    width = len(chunks[0])
    for idx, c in enumerate(chunks):
        if len(c) != width:
            raise ShapeMismatch(f"chunk {idx} has length {len(c)}, expected {width}")

    return [bytes(c[j] for c in chunks) for j in range(width)]
