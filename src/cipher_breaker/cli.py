from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import click

from cipher_breaker.algorithm.ecb_byte_recovery import EcbByteRecovery
from cipher_breaker.algorithm.ecb_detect import detect_ecb, rank_ecb_candidates
from cipher_breaker.algorithm.single_byte import best_single_byte_key
from cipher_breaker.algorithm.vigenere import Vigenere, VigenereSettings
from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.state_queue import SingleSlotQueue
from cipher_breaker.crypto import CipherSuite
from cipher_breaker.errors import CipherBreakerError
from cipher_breaker.logs import configure_logging
from cipher_breaker.models.recovery import RecoverySnapshot
from cipher_breaker.oracles import DEMO_SECRET_B64, EcbSuffixOracle, HttpOracle
from cipher_breaker.scoring import SCORERS, get_scorer
from cipher_breaker.ui import ui_loop
from cipher_breaker.utils import (
    CiphertextFormat,
    EncryptFn,
    PluginLoadError,
    PluginSignatureError,
    b64_decode,
    load_ciphertext,
    load_oracle_fn,
    printable,
)
from cipher_breaker.xor import xor_cipher


FORMATS = ["b64", "b64_urlsafe", "hex", "raw"]
ECB_SUITES = [str(s) for s in CipherSuite if s.value.endswith("ECB")]


@click.group()
@click.option("--verbose", "-v", count=True, help="Repeat for more log output")
@click.option("--json-logs", is_flag=True, envvar="CIPHER_BREAKER_JSON_LOGS", help="Log as JSON")
def cli(verbose: int, json_logs: bool):
    configure_logging(verbose, json_logs)


def recover_secret(oracle: EncryptFn, show_ui: bool = True) -> bytes:
    """Run the ECB byte-at-a-time attack, with the live table if show_ui is set."""
    if not show_ui:
        return EcbByteRecovery(oracle).recover()

    state_queue: SingleSlotQueue[RecoverySnapshot] = SingleSlotQueue()
    cancel = CancelToken()
    engine = EcbByteRecovery(oracle, state_queue=state_queue, cancel=cancel)

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(engine.recover)
        future.add_done_callback(lambda _: state_queue.close())
        try:
            ui_loop(state_queue)
        except KeyboardInterrupt:
            cancel.cancel()
            state_queue.close()
        return future.result()


def _run(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except CipherBreakerError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option("--ciphertext-path", "-c", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--ciphertext-format", "-f", type=click.Choice(FORMATS), default="b64", show_default=True)
@click.option("--min-key-len", default=2, show_default=True, envvar="CIPHER_BREAKER_MIN_KEY_LEN")
@click.option("--max-key-len", default=41, show_default=True, envvar="CIPHER_BREAKER_MAX_KEY_LEN",
              help="Exclusive upper bound")
@click.option("--candidates", "-n", default=5, show_default=True, help="Key lengths to try")
@click.option("--chunk-pairs", default=4, show_default=True, help="Block pairs averaged per key length")
@click.option("--scorer", type=click.Choice(sorted(SCORERS)), default="english", show_default=True,
              envvar="CIPHER_BREAKER_SCORER")
@click.option("--workers", "-w", type=int, default=None, envvar="CIPHER_BREAKER_WORKERS")
def vigenere(
    ciphertext_path: str,
    ciphertext_format: CiphertextFormat,
    min_key_len: int,
    max_key_len: int,
    candidates: int,
    chunk_pairs: int,
    scorer: str,
    workers: Optional[int],
):
    """Break repeating-key XOR."""
    ciphertext = load_ciphertext(ciphertext_path, ciphertext_format)
    try:
        settings = VigenereSettings(min_key_len, max_key_len, candidates, chunk_pairs)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    breaker = Vigenere(settings, scorer=get_scorer(scorer), max_workers=workers)
    result = _run(breaker.decrypt, ciphertext)
    click.echo(f"key ({len(result.key)} bytes): {printable(result.key)}")
    click.echo(f"key hex: {result.key.hex()}")
    click.echo()
    click.echo(printable(result.plaintext))


@cli.command("single-byte")
@click.argument("hex_ciphertext")
@click.option("--scorer", type=click.Choice(sorted(SCORERS)), default="english", show_default=True,
              envvar="CIPHER_BREAKER_SCORER")
def single_byte(hex_ciphertext: str, scorer: str):
    """Break single-byte XOR of a hex string."""
    try:
        ciphertext = bytes.fromhex(hex_ciphertext)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="HEX_CIPHERTEXT") from e

    key, score = best_single_byte_key(ciphertext, get_scorer(scorer))
    click.echo(f"key: {key:#04x}  score: {score:.4f}")
    click.echo(printable(xor_cipher(ciphertext, key)))


@cli.command("detect-ecb")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--block-size", "-b", default=16, show_default=True)
def detect_ecb_cmd(path: str, block_size: int):
    """Find the ECB-encrypted line in a file of hex ciphertexts."""
    with open(path, "r") as f:
        try:
            lines = [bytes.fromhex(line.strip()) for line in f if line.strip()]
        except ValueError as e:
            raise click.ClickException(f"{path} is not one hex ciphertext per line: {e}") from e

    index = rank_ecb_candidates(lines, block_size)
    if index is None:
        click.echo("no repeated blocks found")
        return

    score, offsets = detect_ecb(lines[index], block_size)
    click.echo(f"line {index + 1}: score {score:g}")
    for block_hex, at in offsets.items():
        click.echo(f"  {block_hex} at blocks {', '.join(str(i) for i in at)}")


@cli.command("ecb-demo")
@click.option("--secret-b64", default=DEMO_SECRET_B64, help="Secret the local oracle appends")
@click.option("--prefix/--no-prefix", default=False, help="Prepend random bytes to every input")
@click.option("--suite", type=click.Choice(ECB_SUITES), default=None, help="Random AES key size if omitted")
@click.option("--ui/--no-ui", "show_ui", default=True)
def ecb_demo(secret_b64: str, prefix: bool, suite: Optional[str], show_ui: bool):
    """Recover a secret from a local ECB oracle."""
    oracle = EcbSuffixOracle(b64_decode(secret_b64), suite=suite, with_prefix=prefix)
    secret = _run(recover_secret, oracle, show_ui)
    click.echo(printable(secret))
    click.echo(f"{oracle.queries} oracle queries")


@cli.command("ecb-attack")
@click.option("--url", "-u", envvar="CIPHER_BREAKER_ORACLE_URL", help="Demo API style encrypt endpoint")
@click.option("--oracle-fn", "-o", type=click.Path(exists=True, dir_okay=False),
              help="Python file defining encrypt(data: bytes) -> bytes")
@click.option("--timeout", default=10.0, show_default=True, envvar="CIPHER_BREAKER_TIMEOUT")
@click.option("--output", type=click.Path(dir_okay=False), help="Write the recovered secret here")
@click.option("--ui/--no-ui", "show_ui", default=True)
def ecb_attack(url: Optional[str], oracle_fn: Optional[str], timeout: float, output: Optional[str], show_ui: bool):
    """Recover the secret suffix from a remote or plugin ECB oracle."""
    if (url is None) == (oracle_fn is None):
        raise click.UsageError("give exactly one of --url or --oracle-fn")

    if url is not None:
        oracle: EncryptFn = HttpOracle(url, timeout=timeout)
    else:
        try:
            oracle = load_oracle_fn(oracle_fn)
        except (PluginLoadError, PluginSignatureError) as e:
            raise click.ClickException(str(e)) from e

    secret = _run(recover_secret, oracle, show_ui)
    if output:
        with open(output, "wb") as f:
            f.write(secret)
    click.echo(printable(secret))


@cli.command("demo-api")
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to bind the server to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def demo_api(host: str, port: int, reload: bool):
    """Start the demo oracle API."""
    import uvicorn

    click.echo(f"Starting demo API server on http://{host}:{port}")
    click.echo("Available endpoints:")
    click.echo("  - POST /api/encrypt         - ECB oracle appending a secret (?prefix=true for a random prefix)")
    click.echo("  - POST /api/encrypt-random  - Random ECB/CBC oracle")
    click.echo("  - GET  /api/vigenere        - Repeating-key XOR ciphertext")
    click.echo("\nPress Ctrl+C to stop the server")

    if reload:
        uvicorn.run("demo_api.api:app", host=host, port=port, reload=True)
    else:
        from demo_api.api import app
        uvicorn.run(app, host=host, port=port, reload=False)


if __name__ == "__main__":
    cli()
