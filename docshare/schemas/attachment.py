from pydantic import BaseModel


class AttachmentFile(BaseModel):
    name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return bool(self.content_type) and self.content_type.startswith("image/")


class UploadedObject(BaseModel):
    path: str
    url: str


class ObjectMetadata(BaseModel):
    """Headers recorded with a stored object and replayed when it is served."""

    content_type: str | None = None
    cache_control: str | None = None
