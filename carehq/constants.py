"""
Constants for the CareHQ API client.
Header names must match the ones the CareHQ API reads and sends.
"""

# Request headers
HEADER_ACCEPT = "Accept"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_ACCOUNT_ID = "X-CareHQ-AccountId"
HEADER_API_KEY = "X-CareHQ-APIKey"
HEADER_NONCE = "X-CareHQ-Nonce"
HEADER_SIGNATURE = "X-CareHQ-Signature"
HEADER_SIGNATURE_VERSION = "X-CareHQ-Signature-Version"
HEADER_TIMESTAMP = "X-CareHQ-Timestamp"

# Response headers
HEADER_RATE_LIMIT = "X-CareHQ-RateLimit-Limit"
HEADER_RATE_LIMIT_RESET = "X-CareHQ-RateLimit-Reset"
HEADER_RATE_LIMIT_REMAINING = "X-CareHQ-RateLimit-Remaining"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

# Signature versions
SIGNATURE_VERSION_LEGACY = 1   # timestamp + values + secret, SHA-1 (deprecated)
SIGNATURE_VERSION_HMAC = 2     # canonical params, HMAC-SHA256 with nonce
SIGNATURE_VERSIONS = (SIGNATURE_VERSION_LEGACY, SIGNATURE_VERSION_HMAC)

API_VERSION_PREFIX = "/v1/"
DEFAULT_API_BASE_URL = "https://api.carehq.co.uk"

# Methods without a body sign their query parameters; all others sign the body
QUERY_SIGNED_METHODS = frozenset({"GET", "DELETE"})

NONCE_BYTES = 16

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': None,                                # transport default
    'signature_version': SIGNATURE_VERSION_HMAC,
}
