import pytest

from cipher_breaker.algorithm.ecb_byte_recovery import (
    EcbByteRecovery,
    confirm_ecb,
    discover_block_size,
    discover_prefix_length,
    interrogate,
)
from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.state_queue import SingleSlotQueue
from cipher_breaker.crypto import BlockCipher, CipherSuite
from cipher_breaker.errors import NotEcbError, OracleError, SolutionNotFound
from cipher_breaker.oracles import DEMO_SECRET_B64, EcbSuffixOracle
from cipher_breaker.utils import b64_decode


SECRET = b64_decode(DEMO_SECRET_B64)


class FixedPrefixOracle:
    """ECB oracle with a chosen prefix length."""

    def __init__(self, prefix_len: int, secret: bytes, suite: CipherSuite = CipherSuite.AES_128_ECB):
        self.prefix = bytes((7 * i) & 0xFF for i in range(prefix_len))
        self.secret = secret
        self.cipher = BlockCipher(suite, bytes(range(suite.key_size)))

    def __call__(self, data: bytes) -> bytes:
        return self.cipher.encrypt(self.prefix + data + self.secret)


class TestInterrogation:
    def test_block_size_and_fixed_length(self):
        oracle = FixedPrefixOracle(5, b"S" * 20)
        assert discover_block_size(oracle) == (16, 25)

    def test_block_size_3des(self):
        oracle = FixedPrefixOracle(0, b"S" * 20, CipherSuite.DES3_ECB)
        assert discover_block_size(oracle) == (8, 20)

    def test_no_length_change(self):
        with pytest.raises(OracleError, match="never changed"):
            discover_block_size(lambda data: b"\x00" * 16, max_probe=40)

    def test_confirm_ecb_rejects_cbc(self):
        cbc = BlockCipher(CipherSuite.AES_128_CBC, bytes(16), bytes(16))
        with pytest.raises(NotEcbError):
            confirm_ecb(cbc.encrypt, 16)

    @pytest.mark.parametrize("prefix_len", list(range(0, 34)))
    def test_prefix_length(self, prefix_len):
        oracle = FixedPrefixOracle(prefix_len, b"the secret")
        assert discover_prefix_length(oracle, 16) == prefix_len

    def test_profile(self):
        profile = interrogate(FixedPrefixOracle(21, b"S" * 9))
        assert (profile.block_size, profile.prefix_length, profile.secret_length) == (16, 21, 9)
        assert profile.align == 11
        assert profile.base_block == 2


class TestEcbByteRecovery:
    def test_recovers_secret(self):
        oracle = EcbSuffixOracle(SECRET, suite=CipherSuite.AES_128_ECB)
        assert EcbByteRecovery(oracle).recover() == SECRET

    def test_random_key_size(self):
        oracle = EcbSuffixOracle(b"Rollin' in my 5.0")
        assert EcbByteRecovery(oracle).recover() == b"Rollin' in my 5.0"

    def test_random_prefix(self):
        oracle = EcbSuffixOracle(SECRET, with_prefix=True)
        assert EcbByteRecovery(oracle).recover() == SECRET

    @pytest.mark.parametrize("prefix_len", [1, 7, 15, 16, 17, 30])
    def test_fixed_prefixes(self, prefix_len):
        secret = b"exactly thirty-two bytes long!!!"
        assert EcbByteRecovery(FixedPrefixOracle(prefix_len, secret)).recover() == secret

    def test_3des(self):
        oracle = EcbSuffixOracle(b"eight byte blocks", suite=CipherSuite.DES3_ECB, with_prefix=True)
        assert EcbByteRecovery(oracle).recover() == b"eight byte blocks"

    def test_empty_secret(self):
        assert EcbByteRecovery(FixedPrefixOracle(3, b"")).recover() == b""

    def test_query_count(self):
        oracle = EcbSuffixOracle(b"0123456789", suite=CipherSuite.AES_128_ECB)
        engine = EcbByteRecovery(oracle)
        engine.recover()
        # One solution map per byte, plus one aligned query per filler length and interrogation.
        assert 256 * 10 < engine.queries < 256 * 10 + 80
        assert engine.queries == oracle.queries

    def test_publishes_snapshots(self):
        queue = SingleSlotQueue()
        EcbByteRecovery(FixedPrefixOracle(0, b"abc"), state_queue=queue).recover()
        state = queue.get(timeout=1)
        assert state.complete
        assert state.recovered == b"abc"
        assert state.position == 3

    def test_cancel_returns_partial(self):
        cancel = CancelToken()
        cancel.cancel()
        assert EcbByteRecovery(FixedPrefixOracle(0, b"abc"), cancel=cancel).recover() == b""

    def test_inconsistent_oracle(self):
        """Aligned queries come back under a different key, so no map entry matches"""
        secret = b"Q" * 20

        def oracle(data: bytes) -> bytes:
            key = b"\x01" * 16 if len(data) == 15 else bytes(16)
            return BlockCipher(CipherSuite.AES_128_ECB, key).encrypt(data + secret)

        with pytest.raises(SolutionNotFound) as info:
            EcbByteRecovery(oracle).recover()
        assert info.value.position == 0

    def test_filler_must_be_one_byte(self):
        with pytest.raises(ValueError):
            EcbByteRecovery(lambda data: data, filler=b"AB")
