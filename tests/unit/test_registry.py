from ssechannel.registry import Connection
from ssechannel.registry import ConnectionRegistry


def test_add_keeps_first_connection():
    registry = ConnectionRegistry()
    first = Connection("a", handle="h1")
    assert registry.add(first)
    assert not registry.add(Connection("a", handle="h2"))

    assert len(registry) == 1
    assert registry.get("a") is first


def test_iteration_follows_insertion_order():
    registry = ConnectionRegistry()
    for cid in ("c", "a", "b"):
        registry.add(Connection(cid, handle=cid.upper()))

    assert registry.ids() == ["c", "a", "b"]
    assert registry.handles() == ["C", "A", "B"]
    assert [conn.connection_id for conn in registry] == ["c", "a", "b"]


def test_pop_is_idempotent():
    registry = ConnectionRegistry()
    conn = Connection("a", handle="h")
    registry.add(conn)

    assert registry.pop("a") is conn
    assert conn.closed
    assert registry.pop("a") is None
    assert len(registry) == 0


def test_pop_with_stale_expected_leaves_new_connection():
    registry = ConnectionRegistry()
    old = Connection("a", handle="old")
    registry.add(old)
    registry.pop("a")
    new = Connection("a", handle="new")
    registry.add(new)

    assert registry.pop("a", expected=old) is None
    assert registry.get("a") is new


def test_resolve_maps_missing_ids_to_none():
    registry = ConnectionRegistry()
    registry.add(Connection("a", handle="A"))
    registry.add(Connection("c", handle="C"))

    assert registry.resolve(["a", "b", "c"]) == ["A", None, "C"]


def test_iterating_while_removing_is_safe():
    registry = ConnectionRegistry()
    for cid in ("a", "b", "c"):
        registry.add(Connection(cid, handle=cid))

    for conn in registry:
        registry.pop(conn.connection_id)

    assert len(registry) == 0
