from typing import Optional

from fastapi import status


class LinkError(Exception):
    """Base class for errors reported to API clients with a specific status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(LinkError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class Forbidden(LinkError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(LinkError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Link not found"


class InvalidInput(LinkError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class Conflict(LinkError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Short code or alias already in use"


class QuotaExceeded(LinkError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = (
        "You have reached the limit of active links. "
        "Please deactivate some links first."
    )


class GenerationFailed(LinkError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Failed to generate unique short code"


class Internal(LinkError):
    pass
