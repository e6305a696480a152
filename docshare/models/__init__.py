from .base import BaseModel, metadata
from .friendship import Friendship
from .group import Group, GroupMember
from .message import Message
from .profile import Profile

__all__ = [
    "BaseModel",
    "metadata",
    "Profile",
    "Friendship",
    "Group",
    "GroupMember",
    "Message",
]
