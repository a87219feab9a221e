from fastapi import FastAPI, APIRouter, HTTPException
import structlog

from cipher_breaker.crypto import CipherSuite
from cipher_breaker.oracles import DEMO_SECRET_B64, EcbSuffixOracle, ModeDetectionOracle
from cipher_breaker.utils import b64_decode, b64_encode
from cipher_breaker.xor import xor_encrypt

from . import models

log = structlog.get_logger(
    processors=[
        structlog.processors.JSONRenderer(indent=2),
    ],
)
log.info("logger initialized")

app = FastAPI(title="ECB Oracle Demo API")

router = APIRouter()

SUITE = CipherSuite.AES_128_ECB

# One key, and one random prefix, for the lifetime of the process.
ecb_oracle = EcbSuffixOracle(b64_decode(DEMO_SECRET_B64), suite=SUITE)
ecb_prefix_oracle = EcbSuffixOracle(b64_decode(DEMO_SECRET_B64), suite=SUITE, with_prefix=True)
random_oracle = ModeDetectionOracle()

VIGENERE_KEY = b"Terminator X: Bring the noise"
VIGENERE_PLAINTEXT = b"""In cryptography, a block cipher mode of operation is an algorithm that uses
a block cipher to provide information security such as confidentiality or
authenticity. A block cipher by itself is only suitable for the secure
cryptographic transformation of one fixed-length group of bits called a block.
A mode of operation describes how to repeatedly apply a cipher's single-block
operation to securely transform amounts of data larger than a block. The
simplest of the encryption modes is the electronic codebook mode, in which the
message is divided into blocks and each block is encrypted separately. The
disadvantage of this method is a lack of diffusion: because it encrypts
identical plaintext blocks into identical ciphertext blocks, it does not hide
data patterns well. In the cipher block chaining mode, each block of plaintext
is combined with the previous ciphertext block before being encrypted, so that
each ciphertext block depends on all plaintext blocks processed up to that
point, and a unique initialization vector must be used in the first block.
"""


def build_encrypted_response(alg: CipherSuite, ciphertext: bytes) -> models.EncryptResponse:
    return models.EncryptResponse(
        alg=alg,
        ciphertext_b64=b64_encode(ciphertext),
        ciphertext_hex=ciphertext.hex(),
    )


def decode_plaintext(req: models.EncryptRequest) -> bytes:
    try:
        return b64_decode(req.plaintext_b64)
    except ValueError as e:
        log.warning("bad plaintext", error=str(e))
        raise HTTPException(status_code=400, detail=f"Invalid base64 plaintext: {e}")


@router.post("/encrypt", response_model=models.EncryptResponse)
def encrypt(req: models.EncryptRequest, prefix: bool = False):
    """ Encrypt `[random prefix] || plaintext || secret` under a fixed AES-128-ECB key.
    This is the endpoint vulnerable to byte-at-a-time decryption.
    """
    plaintext = decode_plaintext(req)
    oracle = ecb_prefix_oracle if prefix else ecb_oracle
    ciphertext = oracle(plaintext)
    log.info(
        "encrypted",
        alg=str(SUITE),
        prefix=prefix,
        plaintext_len=len(plaintext),
        ciphertext_len=len(ciphertext),
        queries=oracle.queries,
    )
    return build_encrypted_response(SUITE, ciphertext)


@router.post("/encrypt-random", response_model=models.RandomEncryptResponse)
def encrypt_random(req: models.EncryptRequest):
    """ Encrypt under a fresh key with ECB or CBC picked at random.
    The mode is returned so a detector's guess can be checked.
    """
    plaintext = decode_plaintext(req)
    mode, ciphertext = random_oracle.encrypt_with_mode(plaintext)
    log.info("encrypted random", mode=str(mode), ciphertext_len=len(ciphertext))
    return models.RandomEncryptResponse(
        alg=CipherSuite.for_aes(random_oracle.key_size, mode),
        mode=mode,
        ciphertext_b64=b64_encode(ciphertext),
        ciphertext_hex=ciphertext.hex(),
    )


@router.get("/vigenere", response_model=models.VigenereResponse)
def vigenere():
    """ English text under repeating-key XOR. """
    ciphertext = xor_encrypt(VIGENERE_PLAINTEXT, VIGENERE_KEY)
    return models.VigenereResponse(
        key_length=len(VIGENERE_KEY),
        ciphertext_b64=b64_encode(ciphertext),
        ciphertext_hex=ciphertext.hex(),
    )


app.include_router(router, prefix="/api")
