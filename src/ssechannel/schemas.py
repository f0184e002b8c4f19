# schemas.py
from collections.abc import Mapping
from typing import Any
from typing import Optional

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class TextMessage(BaseModel):
    data: str = ""

    model_config = ConfigDict(frozen=True)


class StructuredMessage(BaseModel):
    data: Any = Field(default=None, validation_alias=AliasChoices("data", "payload"))
    id: Optional[str] = None
    event: Optional[str] = None
    retry: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("id", "event", "retry", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        # Numbers are fine on the wire, everything is text there anyway.
        # Empty values (None, "", 0) mean the field is not set.
        if not v:
            return None
        return str(v)


Message = TextMessage | StructuredMessage


def coerce_message(message: Any) -> Message:
    if isinstance(message, (TextMessage, StructuredMessage)):
        return message
    if isinstance(message, str):
        return TextMessage(data=message)
    if isinstance(message, Mapping):
        return StructuredMessage.model_validate(dict(message))
    if message is None:
        return TextMessage()
    return StructuredMessage(data=message)


class ChannelOptions(BaseModel):
    json_encode: bool = False
    retry_timeout: Optional[int] = None

    @field_validator("retry_timeout", mode="before")
    @classmethod
    def drop_non_positive(cls, v):
        if v is None or int(v) <= 0:
            return None
        return int(v)

    @classmethod
    def from_settings(cls, settings) -> "ChannelOptions":
        return cls(json_encode=settings.json_encode, retry_timeout=settings.retry_timeout)


class PublishRequest(BaseModel):
    data: Any = None
    id: Optional[str | int] = None
    event: Optional[str] = None
    retry: Optional[int] = None
    clients: list[str] = Field(default_factory=list)

    def to_message(self) -> StructuredMessage:
        return StructuredMessage(data=self.data, id=self.id, event=self.event, retry=self.retry)


class RetryRequest(BaseModel):
    retry: int = Field(gt=0)


class ConnectionsRead(BaseModel):
    count: int
    ids: list[str]
