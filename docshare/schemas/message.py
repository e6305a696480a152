import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .profile import ProfileRead


class MessageType(str, enum.Enum):
    TEXT = "text"
    FILE = "file"


class MessageCreate(BaseModel):
    """Outgoing message. Target and file fields are checked by MessageLog.append."""

    sender_id: str
    receiver_id: str | None = None
    group_id: str | None = None
    message_type: MessageType = MessageType.TEXT
    content: str = ""
    file_name: str | None = None
    file_url: str | None = None
    file_size: int | None = None


class MessageRead(BaseModel):
    id: str
    sender_id: str
    receiver_id: str | None = None
    group_id: str | None = None
    message_type: MessageType
    content: str
    file_name: str | None = None
    file_url: str | None = None
    file_size: int | None = None
    created_at: datetime
    sender: ProfileRead | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageSendRequest(BaseModel):
    content: str


class SendResult(BaseModel):
    sent: bool
    message: MessageRead | None = None
