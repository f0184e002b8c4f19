from dataclasses import dataclass
from typing import Any
from typing import Iterator
from typing import Optional


@dataclass(eq=False)
class Connection:
    """One open stream registered under an identifier."""

    connection_id: str
    handle: Any
    request: Any = None
    closed: bool = False


class ConnectionRegistry:
    """Ordered map of connection id -> Connection.

    Iteration follows insertion order. An id maps to at most one open
    connection; a removed Connection never comes back, though its id can be
    registered again by a new one.
    """

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def add(self, connection: Connection) -> bool:
        if connection.connection_id in self._connections:
            return False
        self._connections[connection.connection_id] = connection
        return True

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def pop(self, connection_id: str, expected: Optional[Connection] = None) -> Optional[Connection]:
        """Remove and return the connection, or None if it is already gone.

        With ``expected``, only remove when the id still points at that exact
        connection, so late signals from an old stream leave a reused id alone.
        """
        current = self._connections.get(connection_id)
        if current is None:
            return None
        if expected is not None and current is not expected:
            return None
        del self._connections[connection_id]
        current.closed = True
        return current

    def handles(self) -> list[Any]:
        return [conn.handle for conn in self._connections.values()]

    def ids(self) -> list[str]:
        return list(self._connections)

    def resolve(self, connection_ids) -> list[Any]:
        """Handles for the given ids; unknown ids resolve to None."""
        resolved = []
        for connection_id in connection_ids:
            conn = self._connections.get(connection_id)
            resolved.append(conn.handle if conn else None)
        return resolved
