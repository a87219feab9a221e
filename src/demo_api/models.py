from pydantic import BaseModel

from cipher_breaker.crypto import CipherMode, CipherSuite


class EncryptRequest(BaseModel):
    plaintext_b64: str


class EncryptResponse(BaseModel):
    alg: CipherSuite
    ciphertext_b64: str
    ciphertext_hex: str


class RandomEncryptResponse(EncryptResponse):
    mode: CipherMode


class VigenereResponse(BaseModel):
    key_length: int
    ciphertext_b64: str
    ciphertext_hex: str
