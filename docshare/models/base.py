import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base, declared_attr


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(declarative_base()):
    __abstract__ = True

    # Ids are opaque strings; profile ids come from the auth provider as-is
    id = Column(String(64), primary_key=True, default=_new_id)

    @declared_attr
    def created_at(cls):
        # Assigned at insert with microsecond resolution; orders a conversation
        return Column(DateTime(timezone=True), nullable=False, default=_utcnow)


metadata = BaseModel.metadata
