import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .profile import ProfileRead


class FriendshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FriendshipRead(BaseModel):
    id: str
    requester_id: str
    addressee_id: str
    status: FriendshipStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def counterpart_of(self, user_id: str) -> str:
        """Id of the side of this friendship that is not ``user_id``."""
        if self.requester_id == user_id:
            return self.addressee_id
        return self.requester_id


class PendingRequest(BaseModel):
    request_id: str
    from_profile: ProfileRead
    created_at: datetime


class FriendRequestCreate(BaseModel):
    addressee_id: str
