from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence
import os
import threading

import structlog

from cipher_breaker.core.cancel import CancelToken
from cipher_breaker.core.result_channel import ResultChannel
from cipher_breaker.models.candidates import Scoreable, ScoredCandidate


log = structlog.get_logger()

DEFAULT_MAX_WORKERS = min(4, os.cpu_count() or 1)
CHANNEL_SIZE = 64


def _produce(
    trials: Sequence[Scoreable],
    indexes: range,
    score_fn: Callable[[bytes], float],
    channel: ResultChannel[ScoredCandidate],
    cancel: CancelToken,
) -> None:
    for i in indexes:
        if cancel.cancelled:
            return
        trial = trials[i]
        payload = trial.payload_bytes()
        scored = ScoredCandidate(payload=payload, key=trial.key_material(), score=score_fn(payload))
        if not channel.put(scored):
            return


def max_scored(
    trials: Sequence[Scoreable],
    score_fn: Callable[[bytes], float],
    *,
    cancel: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> Optional[ScoredCandidate]:
    """Score every trial concurrently and return the single best one.

    Producers run on a thread pool and feed a bounded channel; this thread is
    the only reader and the only owner of the current best. Ties go to the
    shorter key, then the lower key bytes, whatever order results arrive in.
    If cancel fires, the best seen so far is returned (None if nothing was
    scored yet). Returns None for an empty trial list.
    """
    if not trials:
        return None

    cancel = cancel or CancelToken()
    workers = max(1, min(max_workers or DEFAULT_MAX_WORKERS, len(trials)))
    channel: ResultChannel[ScoredCandidate] = ResultChannel(maxsize=CHANNEL_SIZE)
    unregister = cancel.on_cancel(channel.close)

    remaining = workers
    remaining_lock = threading.Lock()

    def producer_done(_: Future) -> None:
        nonlocal remaining
        with remaining_lock:
            remaining -= 1
            finished = remaining == 0
        if finished:
            channel.close()

    futures: List[Future] = []
    best: Optional[ScoredCandidate] = None
    try:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for worker in range(workers):
                # Strided split keeps each producer's share the same size.
                indexes = range(worker, len(trials), workers)
                future = executor.submit(_produce, trials, indexes, score_fn, channel, cancel)
                future.add_done_callback(producer_done)
                futures.append(future)

            while True:
                candidate = channel.get()
                if candidate is None:
                    break
                if candidate.beats(best):
                    best = candidate
    finally:
        unregister()

    for future in futures:
        error = future.exception()
        if error is not None:
            raise error

    if cancel.cancelled:
        log.debug("scoring cancelled", trials=len(trials), best_score=best.score if best else None)
    return best
