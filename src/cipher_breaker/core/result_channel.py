from collections import deque
from typing import Deque, Generic, Optional, TypeVar
import threading


T = TypeVar("T")


class ResultChannel(Generic[T]):
    """Thread-safe, bounded, closable FIFO. Many producers, one consumer.

    Unlike SingleSlotQueue nothing is dropped: put() blocks while the channel
    is full. Once closed, put() is a no-op and get() drains what is left
    before returning None.
    """

    def __init__(self, maxsize: int = 256) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._condition = threading.Condition()
        self._items: Deque[T] = deque()
        self._maxsize = maxsize
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def put(self, item: T) -> bool:
        """Add an item, waiting for room. Returns False if the channel was closed."""
        with self._condition:
            self._condition.wait_for(lambda: self._closed or len(self._items) < self._maxsize)
            if self._closed:
                return False
            self._items.append(item)
            self._condition.notify_all()
            return True

    def close(self) -> None:
        """Close the channel. Wakes every blocked producer and the consumer."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Blocks until an item is available or the channel is closed and drained.
        Returns None once closed and empty."""
        with self._condition:
            ok = self._condition.wait_for(lambda: self._items or self._closed, timeout)
            if not ok:
                raise TimeoutError("channel get() timed out")
            if not self._items:
                return None
            item = self._items.popleft()
            self._condition.notify_all()
            return item
