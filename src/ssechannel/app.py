import asyncio

import air
from air.responses import JSONResponse
from fastapi import Depends
from fastapi import Query
from fastapi.responses import StreamingResponse

from ssechannel.channel import SSEChannel
from ssechannel.deps import get_channel
from ssechannel.logging import configure_logging
from ssechannel.routes.channel import router as channel_router
from ssechannel.settings import settings
from ssechannel.stream import StreamHandle

configure_logging(settings.log_level)

app = air.Air()

app.include_router(channel_router)


@app.get("/stream")
async def event_stream(
    request: air.Request,
    connection_id: str | None = Query(default=None, alias="id"),
    channel: SSEChannel = Depends(get_channel),
):
    connection_id = connection_id or settings.default_connection_id
    if connection_id in channel.connections:
        return JSONResponse({"detail": f"Connection {connection_id} already open"}, status_code=409)

    handle = StreamHandle(maxsize=settings.queue_maxsize)
    channel.add_connection(request, handle, connection_id)

    async def generator():
        try:
            while True:
                if await request.is_disconnected():
                    handle.emit("end")
                    break
                try:
                    chunk = await handle.read(timeout=settings.ping_interval)
                except asyncio.TimeoutError:
                    yield ": ping\n\n"
                    continue
                if chunk is None:
                    handle.emit("finish")
                    break
                yield chunk
        finally:
            handle.emit("close")

    return StreamingResponse(
        generator(),
        status_code=handle.status_code,
        headers=handle.headers,
    )


@app.get("/healthz")
def healthz():
    return JSONResponse({"ok": True})
