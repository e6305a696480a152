import enum
from typing import Any

from pydantic import BaseModel, Field


class EventKind(str, enum.Enum):
    INSERT = "INSERT"


class ChangeEvent(BaseModel):
    table: str
    kind: EventKind
    new: dict[str, Any] = Field(default_factory=dict)
