from abc import ABC, abstractmethod


class ObjectStorageError(Exception):
    """Raised by an object store backend when an upload or lookup fails."""


class ObjectConflictError(ObjectStorageError):
    """An object already exists under the key and overwriting was not allowed."""


class AttachmentService(ABC):
    """Remote object store holding message attachments."""

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool = False,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> None: ...

    @abstractmethod
    async def public_url_of(self, key: str) -> str:
        """URL anyone can dereference to download the object stored at ``key``."""
