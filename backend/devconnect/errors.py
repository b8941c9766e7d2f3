"""Typed failures surfaced by the client core.

Every public operation either returns its value or raises one of these.
``code`` is stable and meant for presentation layers to branch on.
"""

from typing import Callable, Optional

from pydantic import ValidationError

from devconnect.http import RequestFailed


class DevConnectError(Exception):
    """Base class for all client core failures."""
    code = "ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidTransition(DevConnectError):
    """Requested status is not reachable from the current status."""
    code = "INVALID_TRANSITION"

    def __init__(self, message: str, application_id: Optional[str] = None,
                 current=None, target=None, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.application_id = application_id
        self.current = current
        self.target = target


class AlreadyTerminal(InvalidTransition):
    """The application is in a status that allows no further transition."""
    code = "ALREADY_TERMINAL"


class Unauthorized(DevConnectError):
    """Actor may not perform the operation (local role check or server 401/403)."""
    code = "UNAUTHORIZED"


class NetworkFailure(DevConnectError):
    """Transport failure or server-side error."""
    code = "NETWORK_FAILURE"


class NotFound(DevConnectError):
    """Target entity does not exist (anymore)."""
    code = "NOT_FOUND"


class RequestRejected(DevConnectError):
    """Server refused the request for a reason the client cannot categorize."""
    code = "REQUEST_REJECTED"


class InvalidResponse(DevConnectError):
    """Server payload could not be normalized into the canonical shape."""
    code = "INVALID_RESPONSE"


# What a gateway call may raise; anything else is a bug and propagates as-is.
GATEWAY_ERRORS = (RequestFailed, ValidationError, DevConnectError)


def classify(
    exc: Exception,
    rejected: Optional[Callable[[str, Optional[int]], DevConnectError]] = None,
) -> DevConnectError:
    """Map a gateway failure onto the typed taxonomy.

    Args:
        exc: Exception raised by the gateway
        rejected: Factory for 4xx rejections other than 401/403/404.
            Defaults to RequestRejected.

    Returns:
        A DevConnectError (``exc`` itself if it already is one)
    """
    if isinstance(exc, DevConnectError):
        return exc
    if isinstance(exc, ValidationError):
        return InvalidResponse(f"Unexpected payload: {exc.error_count()} validation error(s)")
    if not isinstance(exc, RequestFailed):
        raise TypeError(f"Not a gateway failure: {exc!r}")

    status = exc.status_code
    if status is None or status >= 500:
        return NetworkFailure(exc.message, status)
    if status in (401, 403):
        return Unauthorized(exc.message, status)
    if status == 404:
        return NotFound(exc.message, status)
    if rejected is not None:
        return rejected(exc.message, status)
    return RequestRejected(exc.message, status)
