from pydantic import BaseModel, Field

from .profile import ProfileRead


class SearchResponse(BaseModel):
    query: str
    results: list[ProfileRead] = Field(default_factory=list)
    # True when a newer search from the same user replaced this one
    superseded: bool = False
