from .base import AttachmentService, ObjectConflictError, ObjectStorageError
from .local import LocalAttachmentService
from .static import ObjectStaticFiles

__all__ = [
    "AttachmentService",
    "LocalAttachmentService",
    "ObjectConflictError",
    "ObjectStaticFiles",
    "ObjectStorageError",
]
