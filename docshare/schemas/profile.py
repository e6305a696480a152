from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ProfileRead(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
