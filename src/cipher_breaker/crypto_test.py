import os

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cipher_breaker.crypto import BlockCipher, CipherMode, CipherSuite, add_padding, strip_padding
from cipher_breaker.errors import InvalidPadding


class TestPadding:
    """PKCS#7 padding"""

    def test_pads_to_block(self):
        assert add_padding(b"YELLOW SUBMARINE", 20) == b"YELLOW SUBMARINE\x04\x04\x04\x04"

    def test_full_block_gets_a_whole_pad_block(self):
        assert add_padding(b"A" * 16, 16) == b"A" * 16 + b"\x10" * 16

    def test_strip(self):
        assert strip_padding(b"ICE ICE BABY\x04\x04\x04\x04", 16) == b"ICE ICE BABY"

    @pytest.mark.parametrize("padded", [
        b"ICE ICE BABY\x05\x05\x05\x05",
        b"ICE ICE BABY\x01\x02\x03\x04",
        b"ICE ICE BABY\x04\x04\x04\x00",
    ])
    def test_strip_invalid(self, padded):
        with pytest.raises(InvalidPadding):
            strip_padding(padded, 16)

    @pytest.mark.parametrize("block_size", [8, 16])
    def test_roundtrip_every_length(self, block_size):
        for n in range(2 * block_size + 1):
            data = os.urandom(n)
            padded = add_padding(data, block_size)
            assert len(padded) % block_size == 0
            assert len(padded) > n
            assert strip_padding(padded, block_size) == data

    def test_strip_wrong_length(self):
        with pytest.raises(InvalidPadding, match="multiple"):
            strip_padding(b"abc", 16)


class TestCipherSuite:
    def test_sizes(self):
        assert CipherSuite.AES_192_ECB.key_size == 24
        assert CipherSuite.AES_256_CBC.block_size == 16
        assert CipherSuite.DES3_ECB.block_size == 8

    def test_mode(self):
        assert CipherSuite.AES_128_CBC.mode is CipherMode.CBC
        assert CipherSuite.DES3_ECB.mode is CipherMode.ECB

    def test_for_aes(self):
        assert CipherSuite.for_aes(32, CipherMode.ECB) is CipherSuite.AES_256_ECB

    def test_str(self):
        assert str(CipherSuite.AES_128_ECB) == "AES-128-ECB"


class TestBlockCipher:
    @pytest.mark.parametrize("suite", list(CipherSuite))
    def test_roundtrip(self, suite):
        iv = os.urandom(suite.block_size) if suite.mode is CipherMode.CBC else None
        cipher = BlockCipher(suite, os.urandom(suite.key_size), iv)
        plaintext = b"attack at dawn, retreat at dusk"
        ciphertext = cipher.encrypt(plaintext)
        assert len(ciphertext) % suite.block_size == 0
        assert cipher.decrypt(ciphertext) == plaintext

    def test_ecb_repeats_blocks(self):
        cipher = BlockCipher(CipherSuite.AES_128_ECB, b"YELLOW SUBMARINE")
        ciphertext = cipher.encrypt(b"A" * 32)
        assert ciphertext[:16] == ciphertext[16:32]

    def test_cbc_hides_repeats(self):
        cipher = BlockCipher(CipherSuite.AES_128_CBC, b"YELLOW SUBMARINE", b"\x00" * 16)
        ciphertext = cipher.encrypt(b"A" * 32)
        assert ciphertext[:16] != ciphertext[16:32]

    def test_bad_key_length(self):
        with pytest.raises(ValueError, match="16 byte key"):
            BlockCipher(CipherSuite.AES_128_ECB, b"short")

    def test_cbc_needs_iv(self):
        with pytest.raises(ValueError, match="IV"):
            BlockCipher(CipherSuite.AES_128_CBC, b"YELLOW SUBMARINE")

    def test_decrypt_bad_padding(self):
        key = b"YELLOW SUBMARINE"
        raw = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
        unpadded = raw.update(b"A" * 16) + raw.finalize()
        with pytest.raises(InvalidPadding):
            BlockCipher(CipherSuite.AES_128_ECB, key).decrypt(unpadded)

    def test_decrypt_unaligned(self):
        cipher = BlockCipher(CipherSuite.AES_128_ECB, b"YELLOW SUBMARINE")
        with pytest.raises(InvalidPadding):
            cipher.decrypt(b"\x00" * 15)
