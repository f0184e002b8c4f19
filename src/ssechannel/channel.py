import logging
import socket
from typing import Any
from typing import Callable
from typing import Iterable
from typing import Optional

from ssechannel.broadcast import WRITE_ERRORS
from ssechannel.broadcast import broadcast
from ssechannel.broadcast import flush
from ssechannel.encoder import HANDSHAKE_HEADERS
from ssechannel.encoder import parse_message
from ssechannel.encoder import render_handshake
from ssechannel.encoder import render_retry
from ssechannel.events import ConnectEvent
from ssechannel.events import DisconnectEvent
from ssechannel.events import EventHub
from ssechannel.events import MessageEvent
from ssechannel.registry import Connection
from ssechannel.registry import ConnectionRegistry
from ssechannel.schemas import ChannelOptions

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_ID = "connectionId"
PREAMBLE_PARAM = "evs_preamble"


class SSEChannel:
    """A set of open event streams that messages are fanned out to.

    All methods are synchronous and meant to be called from the event loop
    thread, so registry reads and writes never interleave.
    """

    def __init__(self, options: Optional[ChannelOptions] = None, **kwargs):
        opts = options or ChannelOptions(**kwargs)
        self.json_encode = opts.json_encode
        self.retry_timeout = opts.retry_timeout
        self.connections = ConnectionRegistry()
        self.connection_count = 0
        self.events = EventHub()

    def on(self, kind, callback: Callable) -> Callable[[], None]:
        return self.events.subscribe(kind, callback)

    def add_connection(self, request: Any, response: Any, connection_id: str = DEFAULT_CONNECTION_ID) -> None:
        """Register a client stream and write the handshake to it.

        Adding an id that is already registered does nothing.
        """
        if connection_id in self.connections:
            logger.debug("Connection %s already registered, ignoring", connection_id)
            return

        configure_transport(request)
        write_head = getattr(response, "write_head", None)
        try:
            if callable(write_head):
                write_head(200, dict(HANDSHAKE_HEADERS))
            for chunk in render_handshake(self.retry_timeout, wants_preamble(request)):
                response.write(chunk)
            flush(response)
        except WRITE_ERRORS as e:
            logger.warning("Handshake failed for %s, not registering: %s", connection_id, e)
            return

        connection = Connection(connection_id=connection_id, handle=response, request=request)
        self.connections.add(connection)
        self.connection_count = len(self.connections)

        def remove():
            self._remove(connection_id, expected=connection)

        listen = getattr(response, "on", None)
        if callable(listen):
            for signal in ("end", "close", "finish"):
                listen(signal, remove)

        logger.info(
            "SSE connection added id=%s total=%d", connection_id, self.connection_count
        )
        self.events.emit(ConnectEvent(request=request, response=response))

    def remove_connection(self, connection_id: str) -> None:
        self._remove(connection_id)

    def _remove(self, connection_id: str, expected: Optional[Connection] = None) -> None:
        connection = self.connections.pop(connection_id, expected=expected)
        if connection is None:
            return
        self.connection_count = len(self.connections)
        logger.info(
            "SSE connection removed id=%s total=%d", connection_id, self.connection_count
        )
        self.events.emit(DisconnectEvent(channel=self, connection=connection.handle))

    def _drop_handle(self, handle: Any) -> None:
        # A failed write counts as a disconnect
        for connection in self.connections:
            if connection.handle is handle:
                self._remove(connection.connection_id, expected=connection)
                return

    def retry(self, retry_timeout: int) -> None:
        """Tell clients how many milliseconds to wait before reconnecting."""
        self.retry_timeout = retry_timeout
        broadcast(self.connections.handles(), render_retry(retry_timeout), self._drop_handle)

    def publish(self, message, clients: Optional[Iterable[str]] = None) -> list:
        """Send a message to the given connection ids, or to everyone.

        Returns the resolved recipients; ids that are not connected show up as
        None and are skipped.
        """
        packet = parse_message(message, self.json_encode)
        clients = list(clients or [])
        if clients:
            recipients = self.connections.resolve(clients)
        else:
            recipients = self.connections.handles()

        sent = broadcast(recipients, packet, self._drop_handle)
        logger.debug("Published %d chars to %d/%d streams", len(packet), sent, len(recipients))

        self.events.emit(MessageEvent(channel=self, message=message, recipients=recipients))
        return recipients

    def close(self) -> None:
        """End every open stream. The channel keeps accepting new ones."""
        for connection in self.connections:
            end = getattr(connection.handle, "end", None)
            try:
                if callable(end):
                    end()
            except WRITE_ERRORS as e:
                logger.warning("Failed to end stream %s: %s", connection.connection_id, e)
            finally:
                self._remove(connection.connection_id, expected=connection)

    def get_connection_count(self) -> int:
        return self.connection_count

    def get_connection_ids(self) -> list[str]:
        return self.connections.ids()


def wants_preamble(request: Any) -> bool:
    query = getattr(request, "query_params", None) or {}
    return bool(query.get(PREAMBLE_PARAM))


def configure_transport(request: Any) -> None:
    """Tune the client socket for a long lived stream, when we can reach it."""
    # ASGI requests (Starlette, air) expose no socket, so under the app this is a no-op
    sock = getattr(request, "socket", None)
    if sock is None:
        return
    try:
        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    except OSError as e:
        logger.debug("Could not tune client socket: %s", e)
