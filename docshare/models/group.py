from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint

from .base import BaseModel


class Group(BaseModel):
    __tablename__ = "groups"

    name = Column(Text, nullable=False)


class GroupMember(BaseModel):
    __tablename__ = "group_members"

    group_id = Column(String(64), ForeignKey("groups.id"), nullable=False)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member_group_user"),
    )
