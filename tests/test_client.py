"""
Unit tests for the CareHQ API client.
"""

import hashlib
import hmac
from unittest.mock import Mock, patch
from urllib.parse import parse_qsl, urlsplit

import pytest
import requests
import responses

from carehq import (
    APIClient,
    APIError,
    ConfigurationError,
    EncodingError,
    Forbidden,
    InvalidRequest,
    NotFound,
    RateLimit,
    RateLimitExceeded,
    ResponseDecodeError,
    TransportError,
    TransportTimeout,
    Unauthorized,
)
from carehq.constants import (
    HEADER_NONCE,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
)

BASE_URL = "https://api.example.com"
SECRET = "test-secret"

RATE_LIMIT_HEADERS = {
    "X-CareHQ-RateLimit-Limit": "60",
    "X-CareHQ-RateLimit-Reset": "1700000000.0",
    "X-CareHQ-RateLimit-Remaining": "59",
}


class TestAPIClient:
    """Test client configuration."""

    def test_init_default_config(self):
        """Test client initialization with default config."""
        client = APIClient("account1", "key1", SECRET)

        assert client.api_base_url == "https://api.carehq.co.uk"
        assert client.config['timeout'] is None
        assert client.config['signature_version'] == 2

    def test_init_custom_config(self):
        """Test client initialization with custom config."""
        client = APIClient("account1", "key1", SECRET, BASE_URL, timeout=10)

        assert client.api_base_url == BASE_URL
        assert client.config['timeout'] == 10

    @pytest.mark.parametrize("args,config", [
        (("", "key1", SECRET), {}),
        (("account1", "", SECRET), {}),
        (("account1", "key1", ""), {}),
        (("account1", "key1", SECRET, ""), {}),
        (("account1", "key1", SECRET), {"timeout": 0}),
        (("account1", "key1", SECRET), {"signature_version": 3}),
    ])
    def test_init_invalid_config(self, args, config):
        """Test client initialization with invalid config."""
        with pytest.raises(ConfigurationError):
            APIClient(*args, **config)

    def test_legacy_signature_deprecated(self):
        """Test selecting the legacy signature warns."""
        with pytest.warns(DeprecationWarning):
            APIClient("account1", "key1", SECRET, signature_version=1)

    def test_rate_limit_unknown_initially(self):
        """Test rate limits are None before any request."""
        client = APIClient("account1", "key1", SECRET)

        assert client.rate_limit is None
        assert client.rate_limit_reset is None
        assert client.rate_limit_remaining is None
        assert client.rate_limit_snapshot is None

    def test_context_manager_closes_session(self):
        """Test the owned session is closed on exit."""
        with APIClient("account1", "key1", SECRET) as client:
            session = client.session = Mock()
            client._owns_session = True

        session.close.assert_called_once()

    def test_injected_session_not_closed(self):
        """Test a caller's session is left open."""
        session = Mock()
        with APIClient("account1", "key1", SECRET, session=session):
            pass

        session.close.assert_not_called()


class TestRequest:
    """Test signed requests against a mocked API."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return APIClient("account1", "key1", SECRET, BASE_URL, timeout=5)

    @responses.activate
    def test_get_returns_body(self, client):
        """Test a 200 response returns the decoded body."""
        responses.add(responses.GET, f"{BASE_URL}/v1/users", json={"items": []}, status=200)

        assert client.get("users") == {"items": []}

    @responses.activate
    def test_no_content(self, client):
        """Test a 204 response returns None."""
        responses.add(responses.DELETE, f"{BASE_URL}/v1/users/1", status=204)

        assert client.delete("users/1") is None

    @responses.activate
    def test_repeated_query_params_signed(self, client):
        """Test a multi-value filter is sent as repeated pairs and signed."""
        responses.add(responses.GET, f"{BASE_URL}/v1/users", json={}, status=200)

        client.get("users", params={"status": ["active", "pending"]})

        request = responses.calls[0].request
        query = parse_qsl(urlsplit(request.url).query)
        assert query == [("status", "active"), ("status", "pending")]

        message = "\n".join([
            request.headers[HEADER_TIMESTAMP],
            request.headers[HEADER_NONCE],
            "GET",
            "/v1/users",
            "status=active\nstatus=pending"
        ])
        expected = hmac.new(SECRET.encode(), message.encode(), hashlib.sha256).hexdigest()
        assert request.headers[HEADER_SIGNATURE] == expected

    @responses.activate
    def test_post_form_body(self, client):
        """Test POST data is sent form-encoded."""
        responses.add(responses.POST, f"{BASE_URL}/v1/users", json={"_id": "1"}, status=200)

        client.post("users", data={"name": "Ann Lee", "roles": ["a", "b"]})

        request = responses.calls[0].request
        assert request.body == "name=Ann+Lee&roles=a&roles=b"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"

    @responses.activate
    def test_legacy_signature_headers(self):
        """Test legacy clients send no nonce."""
        with pytest.warns(DeprecationWarning):
            client = APIClient("account1", "key1", SECRET, BASE_URL, signature_version=1)
        responses.add(responses.GET, f"{BASE_URL}/v1/users", json={}, status=200)

        client.get("users")

        headers = responses.calls[0].request.headers
        assert HEADER_NONCE not in headers
        assert len(headers[HEADER_SIGNATURE]) == 40

    def test_encoding_error_before_send(self, client):
        """Test unsupported values fail without touching the network."""
        client.session = Mock()

        with pytest.raises(EncodingError):
            client.post("users", data={"meta": {"nested": True}})

        client.session.request.assert_not_called()

    def test_timeout_passed_to_transport(self, client):
        """Test the configured timeout is sent with every request."""
        client.session = Mock()
        client.session.request.return_value = Mock(status_code=204, headers={})

        client.put("users/1", data={"name": "x"})

        _, kwargs = client.session.request.call_args
        assert kwargs["timeout"] == 5

    @responses.activate
    def test_success_body_not_json(self, client):
        """Test an undecodable success body is a local error."""
        responses.add(responses.GET, f"{BASE_URL}/v1/users", body="<html>", status=200)

        with pytest.raises(ResponseDecodeError):
            client.get("users")


class TestRateLimits:
    """Test rate-limit headers are recorded."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return APIClient("account1", "key1", SECRET, BASE_URL)

    @responses.activate
    def test_rate_limit_recorded(self, client):
        """Test the snapshot is updated and kept across responses without headers."""
        responses.add(
            responses.GET, f"{BASE_URL}/v1/users", json={}, status=200,
            headers=RATE_LIMIT_HEADERS
        )
        responses.add(responses.GET, f"{BASE_URL}/v1/users", json={}, status=200)

        client.get("users")
        assert client.rate_limit == 60
        assert client.rate_limit_reset == 1700000000.0
        assert client.rate_limit_remaining == 59

        client.get("users")
        assert client.rate_limit_snapshot == RateLimit(60, 1700000000.0, 59)

    @responses.activate
    def test_rate_limit_recorded_on_failure(self, client):
        """Test failed responses also update the snapshot."""
        responses.add(
            responses.GET, f"{BASE_URL}/v1/users", json={}, status=429,
            headers={**RATE_LIMIT_HEADERS, "X-CareHQ-RateLimit-Remaining": "0"}
        )

        with pytest.raises(RateLimitExceeded):
            client.get("users")

        assert client.rate_limit_remaining == 0


class TestErrorMapping:
    """Test failed responses raise typed errors."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return APIClient("account1", "key1", SECRET, BASE_URL)

    @pytest.mark.parametrize("status_code,error_cls", [
        (400, InvalidRequest),
        (401, Unauthorized),
        (403, Forbidden),
        (404, NotFound),
        (405, Forbidden),
        (429, RateLimitExceeded),
        (499, APIError),
        (500, APIError),
    ])
    @responses.activate
    def test_status_mapping(self, client, status_code, error_cls):
        """Test each status raises its error class."""
        responses.add(responses.GET, f"{BASE_URL}/v1/x", json={}, status=status_code)

        with pytest.raises(error_cls) as exc_info:
            client.get("x")

        assert type(exc_info.value) is error_cls
        assert exc_info.value.status_code == status_code

    @responses.activate
    def test_hint_and_arg_errors(self, client):
        """Test the error payload is carried on the exception."""
        responses.add(
            responses.POST, f"{BASE_URL}/v1/users",
            json={"hint": "Bad data", "arg_errors": {"email": ["Invalid."]}},
            status=400
        )

        with pytest.raises(InvalidRequest) as exc_info:
            client.post("users", data={"email": "nope"})

        assert exc_info.value.hint == "Bad data"
        assert exc_info.value.arg_errors == {"email": ["Invalid."]}

    @responses.activate
    def test_malformed_error_body(self, client):
        """Test an undecodable error body gives an error without details."""
        responses.add(responses.GET, f"{BASE_URL}/v1/x", body="Bad Request", status=400)

        with pytest.raises(InvalidRequest) as exc_info:
            client.get("x")

        assert exc_info.value.hint is None
        assert exc_info.value.arg_errors is None

    @responses.activate
    def test_malformed_arg_errors(self, client):
        """Test argument errors that aren't a mapping still give a typed error."""
        responses.add(
            responses.POST, f"{BASE_URL}/v1/users", json={"arg_errors": ["bad"]}, status=400
        )

        with pytest.raises(InvalidRequest) as exc_info:
            client.post("users", data={"email": "nope"})

        assert exc_info.value.arg_errors is None
        assert str(exc_info.value).startswith("[400]")


class TestTransportErrors:
    """Test transport failures are kept apart from API errors."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return APIClient("account1", "key1", SECRET, BASE_URL)

    @patch('carehq.client.requests.Session.request')
    def test_connection_error(self, mock_request, client):
        """Test connection failures raise TransportError."""
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError) as exc_info:
            client.get("users")

        assert not isinstance(exc_info.value, APIError)
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    @patch('carehq.client.requests.Session.request')
    def test_timeout(self, mock_request, client):
        """Test timeouts raise TransportTimeout."""
        mock_request.side_effect = requests.Timeout("too slow")

        with pytest.raises(TransportTimeout):
            client.get("users")

    @patch('carehq.client.requests.Session.request')
    def test_no_retry(self, mock_request, client):
        """Test a failed request is sent only once."""
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            client.get("users")

        assert mock_request.call_count == 1
