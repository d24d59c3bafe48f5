"""
Error taxonomy shared by the storage client, the services and the routes.

Services raise these; the application maps each one to an HTTP status in a
single exception handler (see ``familyhub.app``).
"""

from __future__ import annotations


class HubError(Exception):
    """Base class for every error the service reports to a caller."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(HubError):
    status_code = 400
    default_message = "Bad request"


class Unauthenticated(HubError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(HubError):
    status_code = 403
    default_message = "Access denied"


class NotFound(HubError):
    status_code = 404
    default_message = "Not found"


class Conflict(HubError):
    status_code = 409
    default_message = "Already exists"


class UpstreamFailure(HubError):
    """Unexpected response from the remote store or a failed round-trip.

    ``message`` is for the server log only; clients always receive
    ``public_message``.
    """

    status_code = 500
    default_message = "Upstream storage request failed"
    public_message = "Upstream storage request failed"
