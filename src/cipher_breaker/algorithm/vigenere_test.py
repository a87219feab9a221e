import pytest

from cipher_breaker.algorithm.vigenere import Vigenere, VigenereSettings, decrypt, shortest_period, solve_key_bytes
from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.errors import OutOfRange
from cipher_breaker.models.candidates import KeyLengthCandidate
from cipher_breaker.xor import xor_encrypt


PLAINTEXT = (
    b"It was the best of times, it was the worst of times, it was the age of wisdom, "
    b"it was the age of foolishness, it was the epoch of belief, it was the epoch of "
    b"incredulity, it was the season of light, it was the season of darkness, it was "
    b"the spring of hope, it was the winter of despair, we had everything before us, "
    b"we had nothing before us, we were all going direct to heaven, we were all going "
    b"direct the other way. In short, the period was so far like the present period, "
    b"that some of its noisiest authorities insisted on its being received, for good "
    b"or for evil, in the superlative degree of comparison only. There were a king "
    b"with a large jaw and a queen with a plain face, on the throne of England; there "
    b"were a king with a large jaw and a queen with a fair face, on the throne of France."
)


class TestSolveKeyBytes:
    def test_recovers_key_for_known_length(self):
        key = b"secret"
        candidate = KeyLengthCandidate(length=len(key), score=0.0)
        solve_key_bytes(xor_encrypt(PLAINTEXT, key), candidate)
        assert bytes(candidate.recovered_key) == key


class TestShortestPeriod:
    @pytest.mark.parametrize("key, expected", [
        (b"ICEICEICEICE", b"ICE"),
        (b"KEYKEY", b"KEY"),
        (b"AAAA", b"A"),
        (b"ICE", b"ICE"),
        (b"ICEIC", b"ICEIC"),
        (b"ABAB" + b"ABAC", b"ABABABAC"),
        (b"", b""),
    ])
    def test_shortest_period(self, key, expected):
        assert shortest_period(key) == expected


class TestDecrypt:
    def test_ice(self):
        ciphertext = xor_encrypt(PLAINTEXT, b"ICE")
        result = decrypt(ciphertext, min_key_len=2, max_key_len=6)
        assert result.key == b"ICE"
        assert result.plaintext == PLAINTEXT
        assert 1 <= len(result.candidates) <= 4

    @pytest.mark.parametrize("key", [b"ICE", b"KEY"])
    def test_default_settings_return_the_key_not_a_repeat(self, key):
        result = decrypt(xor_encrypt(PLAINTEXT, key))
        assert result.key == key
        assert result.plaintext == PLAINTEXT

    def test_default_search(self):
        key = b"Bring the noise"
        result = decrypt(xor_encrypt(PLAINTEXT, key), num_chunk_pairs_for_ranking=8)
        assert result.plaintext == PLAINTEXT
        assert result.key == key

    def test_candidates_are_rescored(self):
        result = decrypt(xor_encrypt(PLAINTEXT, b"ICE"), min_key_len=2, max_key_len=6)
        assert max(c.score for c in result.candidates) == result.score
        keys = [c.key for c in result.candidates]
        assert len(set(keys)) == len(keys)
        assert b"ICE" in keys

    def test_caller_token_is_left_clean(self):
        cancel = CancelToken()
        decrypt(xor_encrypt(PLAINTEXT, b"ICE"), 2, 12, cancel=cancel)
        assert cancel._callbacks == []

    def test_too_short(self):
        with pytest.raises(OutOfRange):
            decrypt(b"short ciphertext")


class TestVigenere:
    def test_settings(self):
        breaker = Vigenere(VigenereSettings(min_key_len=2, max_key_len=8, num_candidate_lengths=6))
        result = breaker.decrypt(xor_encrypt(PLAINTEXT, b"KEY"))
        assert result.key == b"KEY"
        # The length-6 key collapses onto KEY, so at most 5 distinct keys are scored.
        assert len(result.candidates) <= 5

    def test_rank_key_lengths(self):
        breaker = Vigenere(VigenereSettings(min_key_len=2, max_key_len=20))
        ranked = breaker.rank_key_lengths(xor_encrypt(PLAINTEXT, b"secret"))
        assert any(c.length % 6 == 0 for c in ranked[:5])

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            VigenereSettings(num_candidate_lengths=0)
