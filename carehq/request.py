"""
Assembly of signed CareHQ API requests.

`RequestBuilder` turns a method, path and parameters into the URL, headers
and body to send. It performs no I/O.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .constants import (
    API_VERSION_PREFIX,
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    HEADER_ACCEPT,
    HEADER_ACCOUNT_ID,
    HEADER_API_KEY,
    HEADER_CONTENT_TYPE,
    HEADER_NONCE,
    HEADER_SIGNATURE,
    HEADER_SIGNATURE_VERSION,
    HEADER_TIMESTAMP,
    QUERY_SIGNED_METHODS,
    SIGNATURE_VERSION_LEGACY,
)
from .encoding import Params, build_query, canonical_params, clean_params
from .signing import (
    generate_legacy_timestamp,
    generate_nonce,
    generate_timestamp,
    sign,
    sign_legacy,
)


@dataclass(frozen=True)
class PreparedRequest:
    """A signed request ready to hand to the transport."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


def signing_source(method: str, params: Params, data: Params) -> Params:
    """
    Select the parameters to sign for a request.

    Query parameters are signed for methods without a body (GET, DELETE),
    the body for everything else. Only one of them is ever signed.
    """
    if method.upper() in QUERY_SIGNED_METHODS:
        return params
    return data


class RequestBuilder:
    """Builds signed requests for a single set of credentials."""

    def __init__(
        self,
        account_id: str,
        api_key: str,
        api_secret: str,
        base_url: str,
        signature_version: int
    ):
        self.account_id = account_id
        self.api_key = api_key
        self._api_secret = api_secret
        self.base_url = base_url.rstrip('/')
        self.signature_version = signature_version

    def build(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        data: Optional[Params] = None
    ) -> PreparedRequest:
        """
        Build a signed request.

        Args:
            method: HTTP method
            path: Endpoint path relative to ``/v1/``
            params: Query parameters
            data: Body parameters, sent form-encoded

        Returns:
            PreparedRequest with URL, headers and body

        Raises:
            EncodingError: If a parameter value is of an unsupported type
        """
        method = method.upper()
        params = clean_params(params)
        data = clean_params(data)

        headers = {
            HEADER_ACCEPT: CONTENT_TYPE_JSON,
            HEADER_ACCOUNT_ID: str(self.account_id),
            HEADER_API_KEY: str(self.api_key),
            HEADER_SIGNATURE_VERSION: str(self.signature_version),
        }
        headers.update(self._signature_headers(method, path, params, data))

        url = self.base_url + API_VERSION_PREFIX + path.lstrip('/')
        query = build_query(params)
        if query:
            url = f"{url}?{query}"

        # Empty lists encode to nothing, so check the encoded form
        body = build_query(data) or None
        if body:
            headers[HEADER_CONTENT_TYPE] = CONTENT_TYPE_FORM

        return PreparedRequest(method=method, url=url, headers=headers, body=body)

    def _signature_headers(
        self,
        method: str,
        path: str,
        params: Params,
        data: Params
    ) -> Dict[str, str]:
        if self.signature_version == SIGNATURE_VERSION_LEGACY:
            # The legacy verifier signs the query if there is one, else the body
            timestamp = generate_legacy_timestamp()
            signature = sign_legacy(self._api_secret, timestamp, params or data)
            return {
                HEADER_SIGNATURE: signature,
                HEADER_TIMESTAMP: timestamp,
            }

        timestamp = generate_timestamp()
        nonce = generate_nonce()
        canonical = canonical_params(signing_source(method, params, data))
        return {
            HEADER_NONCE: nonce,
            HEADER_SIGNATURE: sign(
                self._api_secret, timestamp, nonce, method, path, canonical
            ),
            HEADER_TIMESTAMP: timestamp,
        }
