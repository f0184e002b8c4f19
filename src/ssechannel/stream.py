import asyncio
import logging
from collections import defaultdict
from typing import Callable

from ssechannel.exceptions import StreamClosedError

logger = logging.getLogger(__name__)

SIGNALS = ("end", "close", "finish")


class StreamHandle:
    """Writable output side of one event stream.

    Writes are buffered until ``flush()`` hands them to a queue that the HTTP
    response drains. Lifecycle signals:

    - ``end``: the client went away (request side disconnect)
    - ``close``: the response coroutine was torn down
    - ``finish``: the stream was ended with ``end()`` and fully drained

    Several of them usually fire for the same stream.
    """

    def __init__(self, maxsize: int = 100):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.status_code: int = 200
        self.headers: dict[str, str] = {}
        self.headers_sent = False
        self.ended = False
        self.finished = False
        self._pending: list[str] = []
        self._listeners: dict[str, list[Callable[[], None]]] = defaultdict(list)
        self._fired: set[str] = set()

    def write_head(self, status_code: int, headers: dict[str, str]) -> None:
        self.status_code = status_code
        self.headers.update(headers)
        self.headers_sent = True

    def write(self, chunk: str) -> None:
        if self.ended:
            raise StreamClosedError("write after end")
        self._pending.append(chunk)

    def flush(self) -> None:
        if not self._pending:
            return
        chunk = "".join(self._pending)
        self._pending.clear()
        self._put(chunk)

    def end(self) -> None:
        if self.ended:
            return
        self.flush()
        self.ended = True
        # None tells the reader no more data will follow
        self._put(None)

    def _put(self, item) -> None:
        try:
            self.queue.put_nowait(item)
        except asyncio.QueueFull:
            # Drop oldest item to make room
            dropped = self.queue.get_nowait()
            logger.warning("Stream buffer full, dropped %d chars", len(dropped or ""))
            self.queue.put_nowait(item)

    def on(self, signal: str, callback: Callable[[], None]) -> None:
        if signal not in SIGNALS:
            raise ValueError(f"Unknown stream signal: {signal}")
        self._listeners[signal].append(callback)

    def emit(self, signal: str) -> None:
        """Fire a lifecycle signal; each signal fires at most once."""
        if signal in self._fired:
            return
        self._fired.add(signal)
        if signal == "finish":
            self.finished = True
        for callback in list(self._listeners[signal]):
            callback()

    async def read(self, timeout: float | None = None):
        """Next chunk, or None once the stream has been ended.

        Raises ``asyncio.TimeoutError`` when nothing arrived within ``timeout``.
        """
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout=timeout)
