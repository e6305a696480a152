from sqlalchemy import Column, Text

from .base import BaseModel


class Profile(BaseModel):
    __tablename__ = "profiles"

    # id and created_at are inherited from BaseModel
    email = Column(Text, unique=True, nullable=False)
    full_name = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
