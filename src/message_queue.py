import threading
from queue import Empty, Queue
from typing import Optional

from models import Transaction


class ShardQueue:
    """
    Thread-safe FIFO feeding a single shard consumer.
    Messages come out in the order they were published, which keeps every
    client routed to this shard in input order.
    """

    DEFAULT_TIMEOUT = 0.1
    DEFAULT_MAXSIZE = 10_000

    def __init__(self, shard_id: int, maxsize: int = DEFAULT_MAXSIZE):
        self.shard_id = shard_id
        # Bounded so a fast publisher blocks instead of buffering the whole input.
        self._queue: Queue[Transaction] = Queue(maxsize=maxsize)
        self._closed_event = threading.Event()

    def publish_message(self, message: Transaction) -> None:
        """Append message to the queue, blocking while it is full. Thread-safe."""
        if self._closed_event.is_set():
            raise RuntimeError(f"shard {self.shard_id} queue is closed")
        self._queue.put(message)

    def consume_message(self) -> Optional[Transaction]:
        """
        Get next message.
        Returns None if the queue is still empty after the timeout.
        """
        try:
            return self._queue.get(timeout=self.DEFAULT_TIMEOUT)
        except Empty:
            return None

    def is_empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        """Return approximate queue size."""
        return self._queue.qsize()

    def close(self) -> None:
        """Signal no more messages will be published."""
        self._closed_event.set()

    def is_closed(self) -> bool:
        return self._closed_event.is_set()

    def is_drained(self) -> bool:
        """True once the publisher is done and every message has been consumed."""
        return self.is_closed() and self.is_empty()
