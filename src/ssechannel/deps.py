from ssechannel.channel import SSEChannel
from ssechannel.schemas import ChannelOptions
from ssechannel.settings import settings

channel = SSEChannel(ChannelOptions.from_settings(settings))


def get_channel() -> SSEChannel:
    return channel
