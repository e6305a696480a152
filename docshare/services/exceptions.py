import logging

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for service layer errors."""

    def __init__(self, message="An internal service error occurred.", status_code=500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Malformed request shape, e.g. a message with both or neither target set."""

    def __init__(self, message="Request failed validation."):
        super().__init__(message, status_code=422)


class FileTooLargeError(ServiceError):
    def __init__(self, message="File exceeds the upload size limit."):
        super().__init__(message, status_code=413)


class NotFoundError(ServiceError):
    def __init__(self, message="Referenced record not found."):
        super().__init__(message, status_code=404)


class NotAuthorizedError(ServiceError):
    def __init__(self, message="User not authorized for this action."):
        super().__init__(message, status_code=403)


class ConflictError(ServiceError):
    """For conflicts like a second friend request for the same pair."""

    def __init__(self, message="Operation conflicts with existing state."):
        super().__init__(message, status_code=409)


class StoreError(ServiceError):
    """Entity store failure (network, permission, constraint)."""

    def __init__(self, message="An entity store error occurred."):
        super().__init__(message, status_code=500)


class AttachmentError(ServiceError):
    """Failure anywhere in the upload-then-link flow; ``__cause__`` holds the reason."""

    def __init__(self, message="The attachment could not be sent."):
        super().__init__(message, status_code=502)
