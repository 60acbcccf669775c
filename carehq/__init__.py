"""
CareHQ API client

A Python client library that signs requests to the CareHQ API, records
the rate limits it reports and raises typed errors for failed requests.

Example usage:
    from carehq import APIClient

    client = APIClient("account-id", "api-key", "api-secret")
    users = client.get("users", params={"status": ["active", "pending"]})
"""

from .client import APIClient
from .exceptions import (
    CareHQError,
    ConfigurationError,
    EncodingError,
    TransportError,
    TransportTimeout,
    ResponseDecodeError,
    APIError,
    InvalidRequest,
    Unauthorized,
    Forbidden,
    NotFound,
    RateLimitExceeded
)
from .rate_limit import RateLimit
from .request import PreparedRequest
from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CONFIG,
    SIGNATURE_VERSION_HMAC,
    SIGNATURE_VERSION_LEGACY
)

__version__ = "1.0.0"
__all__ = [
    "APIClient",
    "CareHQError",
    "ConfigurationError",
    "EncodingError",
    "TransportError",
    "TransportTimeout",
    "ResponseDecodeError",
    "APIError",
    "InvalidRequest",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "RateLimitExceeded",
    "RateLimit",
    "PreparedRequest",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_CONFIG",
    "SIGNATURE_VERSION_HMAC",
    "SIGNATURE_VERSION_LEGACY"
]
