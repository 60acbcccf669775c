"""
Exceptions for the CareHQ API client.

Errors raised locally (bad configuration, unsupported parameter values,
transport failures) are kept apart from `APIError`, which is only raised
when the API responds with a non-success status code.
"""

from typing import Dict, List, Optional, Type


class CareHQError(Exception):
    """Base exception for CareHQ client errors."""
    pass


class ConfigurationError(CareHQError):
    """Raised when client configuration is invalid."""
    pass


class EncodingError(CareHQError, TypeError):
    """Raised when a parameter value cannot be encoded for a request."""
    pass


class TransportError(CareHQError):
    """Raised when the API could not be reached or replied with garbage."""
    pass


class TransportTimeout(TransportError):
    """Raised when a request exceeds the configured timeout."""
    pass


class ResponseDecodeError(CareHQError):
    """Raised when the body of a successful response cannot be decoded."""
    pass


class APIError(CareHQError):
    """
    An error returned by the API.

    Attributes:
        status_code: HTTP status code of the response
        hint: Additional information as to why the error occurred
        arg_errors: Errors relating to the arguments sent to the endpoint,
            e.g. ``{'arg_name': ['error1', ...]}``
    """

    description = 'An error occurred while processing an API request.'

    def __init__(
        self,
        status_code: int,
        hint: Optional[str] = None,
        arg_errors: Optional[Dict[str, List[str]]] = None
    ):
        self.status_code = status_code
        self.hint = hint
        self.arg_errors = arg_errors
        super().__init__(status_code, hint, arg_errors)

    def __str__(self) -> str:
        parts = [f"[{self.status_code}] {self.description}"]

        if self.hint:
            parts.append(f"Hint: {self.hint}")

        if self.arg_errors:
            lines = [
                f"- {arg}: {' '.join(str(e) for e in _as_list(errors))}"
                for arg, errors in sorted(self.arg_errors.items())
            ]
            parts.append("Argument errors:\n" + "\n".join(lines))

        return "\n---\n".join(parts)


class InvalidRequest(APIError):
    """400: missing or invalid parameter."""

    description = (
        'Not a valid request, most likely a missing or invalid parameter.'
    )


class Unauthorized(APIError):
    """401: invalid credentials."""

    description = 'The API credentials provided are not valid.'


class Forbidden(APIError):
    """403/405: method not allowed or permission denied."""

    description = (
        'The request is not allowed, most likely the HTTP method used to '
        'call the API endpoint is incorrect or the API key (via its '
        'associated account) does not have permission to call the endpoint '
        'and/or perform the action.'
    )


class NotFound(APIError):
    """404: endpoint or resource does not exist."""

    description = (
        "The endpoint you are calling or the document you referenced "
        "doesn't exist."
    )


class RateLimitExceeded(APIError):
    """429: request budget exhausted."""

    description = (
        'You have exceeded the number of API requests allowed per second.'
    )


# Map HTTP status codes to exception classes.
STATUS_MAP: Dict[int, Type[APIError]] = {
    400: InvalidRequest,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    405: Forbidden,
    429: RateLimitExceeded,
}


def _as_list(errors) -> list:
    if isinstance(errors, (list, tuple)):
        return list(errors)
    return [errors]


def get_class_by_status_code(
    status_code: int,
    default: Optional[Type[APIError]] = None
) -> Type[APIError]:
    """Return the exception class for a status code."""
    return STATUS_MAP.get(status_code, default or APIError)


def error_for_status(status_code: int, error: Optional[dict] = None) -> APIError:
    """
    Build the exception for a failed response.

    Args:
        status_code: HTTP status code of the response
        error: Decoded error payload, or None if the body couldn't be decoded

    Returns:
        An `APIError` (or subclass) carrying the status code, hint and
        argument errors from the payload
    """
    if not isinstance(error, dict):
        error = {}

    # Malformed fields are dropped rather than carried on the exception
    hint = error.get('hint')
    if not isinstance(hint, str):
        hint = None

    arg_errors = error.get('arg_errors')
    if not isinstance(arg_errors, dict):
        arg_errors = None

    error_cls = get_class_by_status_code(status_code)
    return error_cls(status_code, hint=hint, arg_errors=arg_errors)
