import base64
import binascii
import importlib.util
import inspect
from pathlib import Path
from typing import Callable, Dict, Literal, TypeAlias, Union

EncryptFn = Callable[[bytes], bytes]
BytesOrText = Union[str, bytes, bytearray, memoryview]

PLUGIN_FUNC_NAME = "encrypt"

CiphertextFormat: TypeAlias = Literal["b64", "b64_urlsafe", "hex", "raw"]


class PluginLoadError(RuntimeError):
    """The oracle plugin could not be imported or defines no encrypt()."""


class PluginSignatureError(TypeError):
    """The plugin's encrypt() does not take exactly one positional argument."""


def to_bytes(data: BytesOrText) -> bytes:
    """Text is UTF-8 encoded; buffers are copied to bytes."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Cannot convert {type(data).__name__} to bytes")


def b64_encode(data: BytesOrText, *, urlsafe: bool = False) -> str:
    raw = to_bytes(data)
    encoded = base64.urlsafe_b64encode(raw) if urlsafe else base64.b64encode(raw)
    return encoded.decode("ascii")


def b64_decode(text: BytesOrText, *, urlsafe: bool = False) -> bytes:
    """Decode standard or URL-safe base64, ignoring whitespace and missing '=' padding.
    Input that is not strict standard base64 is retried as URL-safe. Characters
    outside both alphabets raise binascii.Error, a ValueError."""
    compact = b"".join(to_bytes(text).split())
    compact += b"=" * (-len(compact) % 4)
    if urlsafe:
        return base64.b64decode(compact, altchars=b"-_", validate=True)
    try:
        return base64.b64decode(compact, validate=True)
    except binascii.Error:
        return base64.b64decode(compact, altchars=b"-_", validate=True)


def hex_to_base64(hex_text: str) -> str:
    return b64_encode(bytes.fromhex(hex_text))


def printable(data: bytes) -> str:
    """Printable ASCII and newlines as-is, every other byte as a \\x escape."""
    return "".join(chr(b) if 0x20 <= b < 0x7F or b == 0x0A else f"\\x{b:02x}" for b in data)


DECODERS: Dict[str, Callable[[bytes], bytes]] = {
    "b64": b64_decode,
    "b64_urlsafe": lambda data: b64_decode(data, urlsafe=True),
    "hex": lambda data: bytes.fromhex(data.decode("ascii")),
    "raw": bytes,
}


def decode_ciphertext(data: bytes, format: CiphertextFormat) -> bytes:
    try:
        decoder = DECODERS[format]
    except KeyError:
        raise ValueError(f"Invalid ciphertext format: {format}") from None
    return decoder(data)


def load_ciphertext(file_path: str, format: CiphertextFormat) -> bytes:
    return decode_ciphertext(Path(file_path).read_bytes(), format)


def load_oracle_fn(module_file_path: str) -> EncryptFn:
    """Import a user's Python file and return its `encrypt(data: bytes) -> bytes`.
    The file is executed."""
    spec = importlib.util.spec_from_file_location("oracle_fn", module_file_path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Could not load spec for: {module_file_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    fn = getattr(module, PLUGIN_FUNC_NAME, None)
    if not callable(fn):
        raise PluginLoadError(f"{module_file_path} must define `{PLUGIN_FUNC_NAME}(data: bytes) -> bytes`")

    params = list(inspect.signature(fn).parameters.values())
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    if len(params) != 1 or params[0].kind not in positional:
        raise PluginSignatureError(f"{PLUGIN_FUNC_NAME} must accept exactly one positional arg: (data: bytes)")
    return fn
