# src/contextpack/core/progress.py
import queue
from typing import Callable, Iterator, Optional

from contextpack.config import PROGRESS_QUEUE_SIZE
from contextpack.models import Progress

ProgressCallback = Callable[[Progress], None]


class ProgressChannel:
    """
    Bounded, non-blocking stream of Progress events.

    The producer never waits: when the queue is full the event is dropped.
    Consumers see approximate progress. An optional listener is called
    synchronously with every event, including those the queue drops.
    """

    def __init__(self, capacity: int = PROGRESS_QUEUE_SIZE, listener: Optional[ProgressCallback] = None):
        self._queue: "queue.Queue[Progress]" = queue.Queue(maxsize=max(capacity, 1))
        self._listener = listener
        self.dropped = 0

    def publish(self, event: Progress) -> None:
        if self._listener is not None:
            self._listener(event)
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1

    def get(self, timeout: Optional[float] = None) -> Optional[Progress]:
        """Returns the next event, or None if none arrives in time."""
        try:
            if timeout is None:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> Iterator[Progress]:
        """Yields every event currently buffered without blocking."""
        while True:
            event = self.get()
            if event is None:
                return
            yield event
