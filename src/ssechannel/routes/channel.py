import air
from air.responses import JSONResponse
from fastapi import APIRouter
from fastapi import Depends
from pydantic import BaseModel
from pydantic import ValidationError

from ssechannel.channel import SSEChannel
from ssechannel.deps import get_channel
from ssechannel.schemas import ConnectionsRead
from ssechannel.schemas import PublishRequest
from ssechannel.schemas import RetryRequest

router = APIRouter(tags=["channel"])


async def parse_body(request: air.Request, model: type[BaseModel]):
    try:
        payload = await request.json()
    except ValueError:
        return None, JSONResponse({"detail": "Body must be JSON"}, status_code=400)
    try:
        return model.model_validate(payload), None
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        return None, JSONResponse({"detail": errors}, status_code=422)


@router.post("/publish")
async def publish(request: air.Request, channel: SSEChannel = Depends(get_channel)):
    data, error = await parse_body(request, PublishRequest)
    if error is not None:
        return error

    recipients = channel.publish(data.to_message(), data.clients)
    delivered = sum(1 for r in recipients if r is not None)
    return JSONResponse({"recipients": delivered})


@router.post("/retry")
async def retry(request: air.Request, channel: SSEChannel = Depends(get_channel)):
    data, error = await parse_body(request, RetryRequest)
    if error is not None:
        return error

    channel.retry(data.retry)
    return JSONResponse({"retry": data.retry})


@router.post("/close")
def close(request: air.Request, channel: SSEChannel = Depends(get_channel)):
    closed = channel.get_connection_count()
    channel.close()
    return JSONResponse({"closed": closed})


@router.get("/connections")
def list_connections(request: air.Request, channel: SSEChannel = Depends(get_channel)):
    data = ConnectionsRead(
        count=channel.get_connection_count(), ids=channel.get_connection_ids()
    )
    return JSONResponse(data.model_dump())
