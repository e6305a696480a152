import logging
from typing import Any

from fastapi import HTTPException, status

from docshare.services import exceptions as service_errors

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    """Base class for API specific exceptions."""

    def __init__(
        self, status_code: int, detail: Any = None, headers: dict | None = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(APIException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UnauthorizedError(APIException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenError(APIException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InternalServerError(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


def handle_service_error(e: service_errors.ServiceError):
    """
    Maps ServiceError subclasses to the matching APIException.
    Called by the @handle_route_errors decorator; always raises.
    """
    message = getattr(e, "message", str(e))
    logger.warning(f"Handling service error: {e.__class__.__name__} - {message}")

    if isinstance(e, service_errors.NotFoundError):
        raise NotFoundError(detail=message)
    elif isinstance(e, service_errors.NotAuthorizedError):
        raise ForbiddenError(detail=message)
    elif isinstance(e, service_errors.ValidationError):
        raise APIException(status_code=422, detail=message)
    elif isinstance(e, service_errors.FileTooLargeError):
        raise APIException(status_code=413, detail=message)
    elif isinstance(e, service_errors.ConflictError):
        raise APIException(status_code=status.HTTP_409_CONFLICT, detail=message)
    elif isinstance(e, service_errors.StoreError):
        logger.error(f"Store error: {e}", exc_info=True)
        raise InternalServerError(detail="A store error occurred.")
    elif isinstance(e, service_errors.AttachmentError):
        raise APIException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)
    else:
        raise APIException(
            status_code=getattr(e, "status_code", 500),
            detail=message or "A service error occurred.",
        )
