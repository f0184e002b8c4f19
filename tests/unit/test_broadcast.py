from ssechannel.broadcast import broadcast
from ssechannel.stream import StreamHandle


class PlainWriter:
    """Writable without flush support."""

    def __init__(self):
        self.written = []

    def write(self, chunk):
        self.written.append(chunk)


def test_writes_and_flushes_every_handle(read):
    handles = [StreamHandle(), StreamHandle()]
    assert broadcast(handles, "data: x\n\n") == 2
    for handle in handles:
        assert read(handle) == "data: x\n\n"


def test_none_entries_are_skipped(read):
    handle = StreamHandle()
    assert broadcast([None, handle, None], "p") == 1
    assert read(handle) == "p"


def test_handles_without_flush_still_get_the_packet():
    writer = PlainWriter()
    broadcast([writer], "p")
    assert writer.written == ["p"]


def test_failed_handle_is_reported_and_others_still_served(read):
    dead = StreamHandle()
    dead.end()
    alive = StreamHandle()
    failed = []

    sent = broadcast([alive, dead], "p", on_error=failed.append)

    assert sent == 1
    assert failed == [dead]
    assert read(alive) == "p"


def test_empty_list():
    assert broadcast([], "p") == 0
