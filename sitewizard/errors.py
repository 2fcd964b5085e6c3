"""Error taxonomy shared by services and the JSON API boundary.

Services raise these; the ``api_operation`` decorator maps them to an HTTP
status and a ``{"error": ..., "details": ...}`` body. Anything that is not a
ServiceError reaching the boundary is reported as UnexpectedError.
"""


class ServiceError(Exception):
    """Base class for every failure an operation reports to its caller."""

    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, include_details=True):
        body = {"error": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Missing or malformed required input."""

    status_code = 400


class AuthenticationError(ServiceError):
    """No caller identity could be resolved."""

    status_code = 401


class AuthorizationError(ServiceError):
    """Caller lacks the role, or does not own the record."""

    status_code = 403


class NotFoundError(ServiceError):
    """A referenced record does not exist."""

    status_code = 404


class UpstreamError(ServiceError):
    """The payment or messaging collaborator failed."""

    status_code = 500


class UnexpectedError(ServiceError):
    status_code = 500
