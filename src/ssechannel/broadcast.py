import logging
from typing import Any
from typing import Callable
from typing import Optional
from typing import Sequence

from ssechannel.exceptions import StreamClosedError

logger = logging.getLogger(__name__)

# What a dead or half-closed stream raises on write, flush or end
WRITE_ERRORS = (StreamClosedError, OSError, RuntimeError)


def flush(handle: Any) -> None:
    # Not every writable knows how to flush
    flush_fn = getattr(handle, "flush", None)
    if callable(flush_fn):
        flush_fn()


def broadcast(
    handles: Sequence[Any],
    packet: str,
    on_error: Optional[Callable[[Any], None]] = None,
) -> int:
    """Write ``packet`` to every live handle and flush it.

    ``None`` entries (ids that no longer resolve) are skipped. A handle that
    fails to take the write is reported through ``on_error`` and the rest still
    get the packet. Returns how many handles were written to.
    """
    sent = 0
    for handle in reversed(list(handles)):
        if handle is None:
            continue
        try:
            handle.write(packet)
            flush(handle)
        except WRITE_ERRORS as e:
            logger.warning("Failed to write to stream %r: %s", handle, e)
            if on_error is not None:
                on_error(handle)
            continue
        sent += 1
    return sent
