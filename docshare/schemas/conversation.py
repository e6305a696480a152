import enum

from pydantic import BaseModel, ConfigDict


class ConversationType(str, enum.Enum):
    FRIEND = "friend"
    GROUP = "group"


class ConversationIdentity(BaseModel):
    """Derived key selecting the messages of one view: a friend's id or a group's id."""

    type: ConversationType
    id: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def friend(cls, user_id: str) -> "ConversationIdentity":
        return cls(type=ConversationType.FRIEND, id=user_id)

    @classmethod
    def group(cls, group_id: str) -> "ConversationIdentity":
        return cls(type=ConversationType.GROUP, id=group_id)

    @property
    def is_group(self) -> bool:
        return self.type == ConversationType.GROUP

    def target_fields(self) -> dict[str, str | None]:
        """``receiver_id``/``group_id`` for a message sent into this conversation."""
        if self.is_group:
            return {"receiver_id": None, "group_id": self.id}
        return {"receiver_id": self.id, "group_id": None}
