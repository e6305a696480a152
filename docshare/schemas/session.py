from pydantic import BaseModel, Field

from .conversation import ConversationIdentity
from .friendship import PendingRequest
from .group import GroupRead
from .message import MessageRead
from .profile import ProfileRead


class SessionSnapshot(BaseModel):
    user_id: str
    active_conversation: ConversationIdentity | None = None
    messages: list[MessageRead] = Field(default_factory=list)
    friends: list[ProfileRead] = Field(default_factory=list)
    groups: list[GroupRead] = Field(default_factory=list)
    pending_requests: list[PendingRequest] = Field(default_factory=list)
    search_results: list[ProfileRead] = Field(default_factory=list)
    send_in_flight: bool = False
