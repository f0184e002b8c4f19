import json
import re
from typing import Any

from ssechannel.schemas import StructuredMessage
from ssechannel.schemas import coerce_message

# See https://github.com/amvtek/EventSource/wiki/UserGuide
# Some proxies and EventSource polyfills hold back the first event until ~2KB arrived.
PREAMBLE = "-" * 2056 + "\n"

PROBE = ":ok\n\n"

HANDSHAKE_HEADERS = {
    "Content-Type": "text/event-stream;charset=UTF-8",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def parse_text(text: Any) -> str:
    """Render a payload as `data:` lines, one per physical line, ending the event."""
    lines = _LINE_BREAK.sub("\n", str(text)).split("\n")
    return "\n".join(f"data: {line}" for line in lines) + "\n\n"


def encode_data(data: Any, json_encode: bool) -> str:
    if json_encode:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(data)


def parse_message(message, json_encode: bool = False) -> str:
    """Turn a message (str, mapping or message model) into a wire frame.

    Fields are emitted in a fixed order: event, retry, id, then the payload.
    Unset or empty fields are left out.
    """
    msg = coerce_message(message)

    output = ""
    if isinstance(msg, StructuredMessage):
        if msg.event:
            output += f"event: {msg.event}\n"
        if msg.retry:
            output += f"retry: {msg.retry}\n"
        if msg.id:
            output += f"id: {msg.id}\n"

    data = "" if msg.data is None else msg.data
    output += parse_text(encode_data(data, json_encode))
    return output


def render_retry(retry_timeout: int) -> str:
    return f"retry: {retry_timeout}\n"


def render_handshake(retry_timeout: int | None = None, preamble: bool = False) -> list[str]:
    """Chunks written right after the headers of a new stream."""
    chunks = [PROBE]
    if retry_timeout:
        chunks.append(render_retry(retry_timeout))
    if preamble:
        chunks.append(":" + PREAMBLE)
    return chunks
