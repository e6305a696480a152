from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Enum as SQLAlchemyEnum,
    ForeignKey,
    String,
    Text,
)

from docshare.schemas.message import MessageType

from .base import BaseModel


class Message(BaseModel):
    __tablename__ = "messages"

    # Append-only: no updated_at, no deleted_at
    sender_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    receiver_id = Column(String(64), ForeignKey("profiles.id"), nullable=True)
    group_id = Column(String(64), ForeignKey("groups.id"), nullable=True)
    message_type = Column(
        SQLAlchemyEnum(MessageType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MessageType.TEXT,
    )
    content = Column(Text, nullable=False, default="")
    file_name = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)
    file_size = Column(BigInteger, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(receiver_id IS NULL) <> (group_id IS NULL)",
            name="ck_message_single_target",
        ),
    )
