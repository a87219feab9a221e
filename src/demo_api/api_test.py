from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from cipher_breaker.algorithm.ecb_byte_recovery import EcbByteRecovery
from cipher_breaker.algorithm.ecb_detect import detect_ecb, detect_mode
from cipher_breaker.crypto import CipherSuite
from cipher_breaker.oracles import EcbSuffixOracle, HttpOracle
from cipher_breaker.utils import b64_decode, b64_encode
from cipher_breaker.xor import xor_decrypt

from demo_api import api


@pytest.fixture
def client():
    return TestClient(api.app)


class TestEncrypt:
    def test_encrypt(self, client):
        response = client.post("/api/encrypt", json={"plaintext_b64": b64_encode(b"A" * 32)})
        assert response.status_code == 200
        body = response.json()
        assert body["alg"] == "AES-128-ECB"
        ciphertext = b64_decode(body["ciphertext_b64"])
        assert ciphertext.hex() == body["ciphertext_hex"]
        # Identical input blocks at the start encrypt identically.
        assert ciphertext[:16] == ciphertext[16:32]

    def test_deterministic(self, client):
        payload = {"plaintext_b64": b64_encode(b"hello")}
        first = client.post("/api/encrypt", json=payload).json()
        second = client.post("/api/encrypt", json=payload).json()
        assert first["ciphertext_hex"] == second["ciphertext_hex"]

    @pytest.mark.parametrize("text", ["abcde", "!!!!"])
    def test_bad_base64(self, client, text):
        response = client.post("/api/encrypt", json={"plaintext_b64": text})
        assert response.status_code == 400
        assert "Invalid base64" in response.json()["detail"]

    def test_prefix_variant_differs(self, client):
        payload = {"plaintext_b64": b64_encode(b"hello")}
        plain = client.post("/api/encrypt", json=payload).json()
        prefixed = client.post("/api/encrypt", params={"prefix": True}, json=payload).json()
        assert plain["ciphertext_hex"] != prefixed["ciphertext_hex"]

    def test_attack_over_http(self, client, monkeypatch):
        monkeypatch.setattr(api, "ecb_prefix_oracle", EcbSuffixOracle(b"via fastapi", suite=CipherSuite.AES_128_ECB, with_prefix=True))
        oracle = HttpOracle("/api/encrypt?prefix=true", session=client)
        assert EcbByteRecovery(oracle).recover() == b"via fastapi"


class TestEncryptRandom:
    def test_mode_matches_detector(self, client):
        def oracle(data: bytes) -> bytes:
            body = client.post("/api/encrypt-random", json={"plaintext_b64": b64_encode(data)}).json()
            oracle.mode = body["mode"]
            assert body["alg"].endswith(body["mode"])
            return b64_decode(body["ciphertext_b64"])

        for _ in range(10):
            assert str(detect_mode(oracle)) == oracle.mode

    def test_mode_matches_ciphertext_under_concurrency(self, client):
        payload = {"plaintext_b64": b64_encode(b"A" * 64)}

        def mismatched(i: int) -> bool:
            body = client.post("/api/encrypt-random", json=payload).json()
            repeated, _ = detect_ecb(b64_decode(body["ciphertext_b64"]))
            return (repeated > 0) != (body["mode"] == "ECB")

        with ThreadPoolExecutor(max_workers=8) as executor:
            assert sum(executor.map(mismatched, range(200))) == 0


class TestVigenere:
    def test_ciphertext(self, client):
        body = client.get("/api/vigenere").json()
        ciphertext = b64_decode(body["ciphertext_b64"])
        assert body["key_length"] == len(api.VIGENERE_KEY)
        assert xor_decrypt(ciphertext, api.VIGENERE_KEY) == api.VIGENERE_PLAINTEXT
