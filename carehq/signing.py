"""
Request signatures for the CareHQ API.

Version 2 signs a canonical string binding timestamp, nonce, method, path
and parameters with HMAC-SHA256:

    HMAC-SHA256(secret, timestamp + "\\n" + nonce + "\\n" + METHOD + "\\n"
                        + "/v1/<path>" + "\\n" + canonical_params)

Version 1 is the deprecated legacy scheme kept for older accounts:

    SHA1(timestamp + key1 + value1 + ... + secret)

It has no nonce and does not bind the method or path, so a captured
request can be replayed. Only use it when the account requires it.
"""

import hashlib
import hmac
import secrets
import time
from typing import Any, Mapping, Optional

from .constants import API_VERSION_PREFIX, NONCE_BYTES


def generate_timestamp() -> str:
    """Return the current time as whole seconds since the epoch."""
    return str(int(time.time()))


def generate_legacy_timestamp() -> str:
    """Return the current time with sub-second precision (version 1)."""
    return str(time.time())


def generate_nonce() -> str:
    """Return a single-use, URL-safe random token (no padding)."""
    return secrets.token_urlsafe(NONCE_BYTES)


def signing_path(path: str) -> str:
    """Normalize an endpoint path to ``/v1/<endpoint>``."""
    return API_VERSION_PREFIX + path.lstrip('/')


def string_to_sign(
    timestamp: str,
    nonce: str,
    method: str,
    path: str,
    canonical_body: str
) -> str:
    """Build the string signed by version 2 signatures."""
    return '\n'.join([
        timestamp,
        nonce,
        method.upper(),
        signing_path(path),
        canonical_body
    ])


def sign(
    secret: str,
    timestamp: str,
    nonce: str,
    method: str,
    path: str,
    canonical_body: str
) -> str:
    """
    Generate a version 2 (HMAC-SHA256) request signature.

    Args:
        secret: API secret shared with the server
        timestamp: Seconds since epoch, as generated by `generate_timestamp`
        nonce: Single-use token, as generated by `generate_nonce`
        method: HTTP method
        path: Endpoint path, with or without a leading slash
        canonical_body: Canonical form of the signed parameters

    Returns:
        Lower-case hex-encoded signature
    """
    message = string_to_sign(timestamp, nonce, method, path, canonical_body)
    mac = hmac.new(
        secret.encode('utf-8'),
        message.encode('utf-8'),
        hashlib.sha256
    )
    return mac.hexdigest()


def sign_legacy(
    secret: str,
    timestamp: str,
    signing_source: Optional[Mapping[str, Any]]
) -> str:
    """
    Generate a version 1 (SHA-1) request signature.

    Keys and values are concatenated in their original order without any
    separator or canonicalization.
    """
    values = []
    for key, value in (signing_source or {}).items():
        values.append(str(key))
        if isinstance(value, (list, tuple)):
            values.extend(str(v) for v in value)
        else:
            values.append(str(value))

    message = timestamp + ''.join(values) + secret
    return hashlib.sha1(message.encode('utf-8')).hexdigest()
