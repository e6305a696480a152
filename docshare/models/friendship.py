from sqlalchemy import (
    Column,
    Enum as SQLAlchemyEnum,
    ForeignKey,
    String,
    UniqueConstraint,
)

from docshare.schemas.friendship import FriendshipStatus

from .base import BaseModel


class Friendship(BaseModel):
    __tablename__ = "friendships"

    requester_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    addressee_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    status = Column(
        SQLAlchemyEnum(
            FriendshipStatus, values_callable=lambda e: [m.value for m in e]
        ),
        nullable=False,
        default=FriendshipStatus.PENDING,
    )

    # The reverse direction of a pair is rejected by RelationshipDirectory
    __table_args__ = (
        UniqueConstraint(
            "requester_id", "addressee_id", name="uq_friendship_requester_addressee"
        ),
    )
