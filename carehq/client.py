"""
A client for the CareHQ API.

Every request is signed with the account's API secret. Rate-limit headers
are recorded after each response and failed responses are raised as typed
`APIError` exceptions.
"""

import logging
import warnings
from typing import Any, Optional

import requests

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CONFIG,
    SIGNATURE_VERSION_LEGACY,
    SIGNATURE_VERSIONS,
)
from .encoding import Params
from .exceptions import (
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
    TransportTimeout,
    error_for_status,
)
from .rate_limit import RateLimit, RateLimitTracker
from .request import PreparedRequest, RequestBuilder

logger = logging.getLogger(__name__)


def _raise_for_status(response: requests.Response) -> None:
    """Raise the typed exception for a failed response."""
    try:
        error = response.json()
    except ValueError:
        logger.debug(
            "Failed to decode error body: %s",
            response.text[:200] if response.text else "empty"
        )
        error = None

    raise error_for_status(response.status_code, error)


class APIClient:
    """
    Client for making signed requests to the CareHQ API.

    Usage:
        client = APIClient(account_id, api_key, api_secret)
        users = client.get('users', params={'status': ['active', 'pending']})
        print(client.rate_limit_remaining)
    """

    def __init__(
        self,
        account_id: str,
        api_key: str,
        api_secret: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        session: Optional[requests.Session] = None,
        **config
    ):
        """
        Initialize the client.

        Args:
            account_id: Id of the CareHQ account the API key relates to
            api_key: Key used to authenticate API calls to the account
            api_secret: Secret used to sign each request (never sent)
            api_base_url: Base URL to use when calling the API
            session: Optional requests session to send requests with
            **config: Configuration options (timeout, signature_version)
        """
        self.account_id = account_id
        self.api_key = api_key
        self.api_base_url = api_base_url

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}

        self._validate_config(api_secret)

        if self.config['signature_version'] == SIGNATURE_VERSION_LEGACY:
            warnings.warn(
                "Signature version 1 is deprecated and offers no replay "
                "protection; use signature version 2.",
                DeprecationWarning,
                stacklevel=2
            )

        self._builder = RequestBuilder(
            account_id,
            api_key,
            api_secret,
            api_base_url,
            self.config['signature_version']
        )
        self._rate_limits = RateLimitTracker()

        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def _validate_config(self, api_secret: str):
        """Validate client configuration."""
        if not self.account_id:
            raise ConfigurationError("account_id cannot be empty")

        if not self.api_key:
            raise ConfigurationError("api_key cannot be empty")

        if not api_secret:
            raise ConfigurationError("api_secret cannot be empty")

        if not self.api_base_url:
            raise ConfigurationError("api_base_url cannot be empty")

        timeout = self.config['timeout']
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        if self.config['signature_version'] not in SIGNATURE_VERSIONS:
            raise ConfigurationError(
                f"Unknown signature_version: {self.config['signature_version']}"
            )

    # Rate limiting information is only available after a request has been
    # made.

    @property
    def rate_limit_snapshot(self) -> Optional[RateLimit]:
        """The last rate limit reported by the API, or None."""
        return self._rate_limits.snapshot

    @property
    def rate_limit(self) -> Optional[int]:
        """Maximum number of requests per second for the API key."""
        snapshot = self._rate_limits.snapshot
        return snapshot.limit if snapshot else None

    @property
    def rate_limit_reset(self) -> Optional[float]:
        """Time (seconds since epoch) when the current rate limit resets."""
        snapshot = self._rate_limits.snapshot
        return snapshot.reset if snapshot else None

    @property
    def rate_limit_remaining(self) -> Optional[int]:
        """Requests remaining within the current limit before the next reset."""
        snapshot = self._rate_limits.snapshot
        return snapshot.remaining if snapshot else None

    def prepare(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        data: Optional[Params] = None
    ) -> PreparedRequest:
        """Build the signed request without sending it."""
        return self._builder.build(method, path, params=params, data=data)

    def _send(self, prepared: PreparedRequest) -> requests.Response:
        logger.debug("%s %s", prepared.method, prepared.url)
        try:
            return self.session.request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                data=prepared.body,
                timeout=self.config['timeout']
            )
        except requests.Timeout as e:
            logger.warning("Request timed out: %s %s", prepared.method, prepared.url)
            raise TransportTimeout(f"HTTP request timed out: {e}") from e
        except requests.RequestException as e:
            logger.warning("Request failed: %s %s: %s", prepared.method, prepared.url, e)
            raise TransportError(f"HTTP request failed: {e}") from e

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        data: Optional[Params] = None
    ) -> Any:
        """
        Make a signed request to the API.

        Args:
            method: HTTP method
            path: Endpoint path relative to ``/v1/``
            params: Query parameters
            data: Body parameters, sent form-encoded

        Returns:
            The decoded JSON body, or None for a 204 response

        Raises:
            EncodingError: If a parameter value can't be encoded
            TransportError: If the API couldn't be reached
            ResponseDecodeError: If a successful response body isn't JSON
            APIError: If the API responded with a failure status code
        """
        prepared = self.prepare(method, path, params=params, data=data)
        response = self._send(prepared)

        self._rate_limits.update(response.headers)

        if response.status_code == 204:
            return None

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                raise ResponseDecodeError(
                    f"Could not decode response from {prepared.method} "
                    f"{prepared.url}: {e}"
                ) from e

        _raise_for_status(response)

    def get(self, path: str, params: Optional[Params] = None) -> Any:
        """Make a signed GET request."""
        return self.request('GET', path, params=params)

    def post(self, path: str, data: Optional[Params] = None, params: Optional[Params] = None) -> Any:
        """Make a signed POST request."""
        return self.request('POST', path, params=params, data=data)

    def put(self, path: str, data: Optional[Params] = None, params: Optional[Params] = None) -> Any:
        """Make a signed PUT request."""
        return self.request('PUT', path, params=params, data=data)

    def delete(self, path: str, params: Optional[Params] = None) -> Any:
        """Make a signed DELETE request."""
        return self.request('DELETE', path, params=params)

    def close(self):
        """Close the HTTP session if the client created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
