from typing import Generic, Optional, TypeVar
import threading


T = TypeVar("T")


class SingleSlotQueue(Generic[T]):
    """Latest-wins handoff between a worker and the UI thread.
    Holds at most one item; a new publish replaces an unread one."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._slot: Optional[T] = None
        self._filled = False
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def publish(self, item: T) -> bool:
        """Replace the slot contents. Returns False once the queue is closed."""
        with self._condition:
            if self._closed:
                return False
            self._slot = item
            self._filled = True
            self._condition.notify()
            return True

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block for the next item. An item published before close is still
        delivered; after that, get() returns None."""
        with self._condition:
            if not self._condition.wait_for(lambda: self._filled or self._closed, timeout):
                raise TimeoutError("queue get() timed out")
            if not self._filled:
                return None
            item, self._slot, self._filled = self._slot, None, False
            return item
