class ServiceError(Exception):
    """Base class for errors raised by the service layer.

    Each subclass carries the HTTP status it maps to and a short reason
    string; routes never need to know which concrete error was raised.
    """

    status_code = 500
    reason = "Internal error."


class NotFound(ServiceError):
    status_code = 404
    reason = "The required object was not found."


class ValidationError(ServiceError):
    status_code = 400
    reason = "Incorrectly made request."


class Forbidden(ServiceError):
    status_code = 403
    reason = "For the requested operation the conditions are not met."


class Conflict(ServiceError):
    status_code = 409
    reason = "Integrity constraint has been violated."


class UpstreamUnavailable(ServiceError):
    """The statistics collector could not be reached or answered garbage."""

    status_code = 502
    reason = "Statistics service unavailable."
