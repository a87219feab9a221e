"""English plaintext scoring.

Scorers take arbitrary bytes and return a float where higher means "reads
more like English". They never raise, whatever the input.
"""
from typing import Callable, Dict, Literal, TypeAlias, Union

ScoreFn = Callable[[bytes], float]

ScorerName: TypeAlias = Union[Literal["english", "simple"], str]

# http://practicalcryptography.com/cryptanalysis/letter-frequencies-various-languages/english-letter-frequencies/
LETTER_FREQUENCIES: Dict[str, float] = {
    "a": 8.55, "b": 1.60, "c": 3.16, "d": 3.87, "e": 12.10, "f": 2.18,
    "g": 2.09, "h": 4.96, "i": 7.33, "j": 0.22, "k": 0.81, "l": 4.21,
    "m": 2.53, "n": 7.17, "o": 7.47, "p": 2.07, "q": 0.10, "r": 6.33,
    "s": 6.73, "t": 8.94, "u": 2.68, "v": 1.06, "w": 1.83, "x": 0.19,
    "y": 1.72, "z": 0.11,
}

SPACE_WEIGHT = 13.0
UPPERCASE_WEIGHT = 0.5
PUNCTUATION_WEIGHT = 1.0
NON_PRINTABLE_PENALTY = -10.0

PUNCTUATION = frozenset(b".,;:'\"!?-()\n\r\t0123456789")

# Letters, space and the punctuation the simple scorer counts as "in alphabet".
SIMPLE_ALPHABET = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ,. '"
)


def _byte_weights() -> tuple:
    weights = []
    for value in range(256):
        char = chr(value)
        if "a" <= char <= "z":
            weights.append(LETTER_FREQUENCIES[char])
        elif "A" <= char <= "Z":
            weights.append(LETTER_FREQUENCIES[char.lower()] * UPPERCASE_WEIGHT)
        elif value == 0x20:
            weights.append(SPACE_WEIGHT)
        elif value in PUNCTUATION:
            weights.append(PUNCTUATION_WEIGHT)
        elif 0x20 < value < 0x7F:
            weights.append(0.0)
        else:
            weights.append(NON_PRINTABLE_PENALTY)
    return tuple(weights)


BYTE_WEIGHTS = _byte_weights()


def english_score(data: bytes) -> float:
    """Mean per-byte weight: letter frequency, spaces, light punctuation, and a
    penalty for control and non-ASCII bytes. Lowercase beats uppercase."""
    if not data:
        return 0.0
    return sum(BYTE_WEIGHTS[b] for b in data) / len(data)


def simple_english_score(data: bytes) -> float:
    """Fraction of bytes in a small alphabet, times the summed letter
    frequencies of the upper-cased text."""
    if not data:
        return 0.0
    hits = sum(1 for b in data if b in SIMPLE_ALPHABET)
    scale = hits / len(data)
    weight = 0.0
    for b in data.upper():
        if 0x41 <= b <= 0x5A:
            weight += LETTER_FREQUENCIES[chr(b).lower()]
    return scale * weight


SCORERS: Dict[str, ScoreFn] = {
    "english": english_score,
    "simple": simple_english_score,
}


def get_scorer(name: ScorerName) -> ScoreFn:
    try:
        return SCORERS[name]
    except KeyError:
        raise ValueError(f"Unknown scorer: {name}") from None
