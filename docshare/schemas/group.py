from datetime import datetime

from pydantic import BaseModel, ConfigDict


class GroupRead(BaseModel):
    id: str
    name: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
