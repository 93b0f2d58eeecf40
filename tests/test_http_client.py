"""
Test suite for the Chef HTTP client
"""

import json
import pytest
from unittest.mock import patch

import requests

from chef_sdk.crypto import generate_private_key
from chef_sdk.exceptions import ServerCommunicationError, ValidationError
from chef_sdk.http_client import (
    ChefHttpClient,
    ServerConfig,
    connect,
    connect_credentials,
    connect_url,
    decode_json,
    response_body,
)
from chef_sdk.signing import SigningConfig, SigningError, verify_signed_request

KEY = generate_private_key(2048)

REQUIRED_HEADERS = [
    "Accept",
    "X-Chef-Version",
    "X-Ops-Timestamp",
    "X-Ops-Userid",
    "X-Ops-Sign",
    "X-Ops-Content-Hash",
    "X-Ops-Authorization-1",
]


def make_response(status_code=200, body=b"{}", reason="OK", url="https://chef.example.com/"):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = url
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode('utf-8')
    return response


class TestServerConfig:
    """Test server configuration validation"""

    def test_base_url_gets_trailing_slash(self):
        """Test base URL normalization"""
        config = ServerConfig("https://chef.example.com/organizations/acme")
        assert config.base_url == "https://chef.example.com/organizations/acme/"

    def test_invalid(self):
        """Test invalid server settings"""
        with pytest.raises(ValidationError):
            ServerConfig("")
        with pytest.raises(ValidationError):
            ServerConfig("chef.example.com")
        with pytest.raises(ValidationError):
            ServerConfig("https://chef.example.com", timeout=0)


class TestResponseBody:
    """Test response handling"""

    def test_ok(self):
        """Test a 200 response"""
        assert response_body(make_response(body=b'{"a": 1}')) == b'{"a": 1}'
        assert decode_json(make_response(body=b'{"a": 1}')) == {"a": 1}

    def test_non_200(self):
        """Test Chef error messages in failed responses"""
        response = make_response(401, {"error": ["Failed to authenticate as admin"]}, reason="Unauthorized")
        with pytest.raises(ServerCommunicationError) as exc_info:
            response_body(response)
        assert exc_info.value.http_status == 401
        assert "Failed to authenticate as admin" in str(exc_info.value)

    def test_created_is_not_ok(self):
        """Test that 201 is treated as a failure"""
        with pytest.raises(ServerCommunicationError) as exc_info:
            response_body(make_response(201, b"", reason="Created"))
        assert exc_info.value.http_status == 201

    def test_invalid_json(self):
        """Test a body that is not JSON"""
        with pytest.raises(ServerCommunicationError) as exc_info:
            decode_json(make_response(body=b"<html>"))
        assert exc_info.value.error_code == "INVALID_RESPONSE"


class TestChefHttpClient:
    """Test signed requests through the client"""

    def setup_method(self):
        """Set up test fixtures"""
        self.client = ChefHttpClient(
            ServerConfig("https://chef.example.com/organizations/acme", timeout=7),
            SigningConfig(user_id="admin", private_key=KEY)
        )

    def teardown_method(self):
        """Clean up test fixtures"""
        self.client.close()

    def _send(self, call, response=None):
        with patch.object(self.client.session.session, "send", return_value=response if response is not None else make_response()) as mock_send:
            result = call()
        return result, mock_send.call_args

    def test_request_url(self):
        """Test endpoint resolution against the base URL"""
        assert self.client.request_url("nodes") == "https://chef.example.com/organizations/acme/nodes"
        assert self.client.request_url("/nodes/web1") == "https://chef.example.com/organizations/acme/nodes/web1"

    def test_get_attaches_required_headers(self):
        """Test that GET requests carry every X-Ops header"""
        _, call_args = self._send(lambda: self.client.get("nodes"))
        prepared = call_args[0][0]

        assert prepared.method == "GET"
        assert prepared.url == "https://chef.example.com/organizations/acme/nodes"
        for header in REQUIRED_HEADERS:
            assert header in prepared.headers
        assert prepared.headers["X-Ops-Userid"] == "admin"
        assert prepared.headers["User-Agent"].startswith("chef-api-python-sdk/")
        verify_signed_request(prepared.headers, "GET", "/organizations/acme/nodes", None, KEY)

        assert call_args[1]["timeout"] == 7
        assert call_args[1]["verify"] is not False

    def test_get_with_params_signs_path_only(self):
        """Test that query parameters stay out of the signed path"""
        _, call_args = self._send(lambda: self.client.get_with_params("search/node", {"q": "role:web"}))
        prepared = call_args[0][0]
        assert prepared.url == "https://chef.example.com/organizations/acme/search/node?q=role%3Aweb"
        verify_signed_request(prepared.headers, "GET", "/organizations/acme/search/node", None, KEY)

    def test_post_dict_as_json(self):
        """Test sending dict bodies as JSON"""
        _, call_args = self._send(lambda: self.client.post("nodes", {"name": "web1"}))
        prepared = call_args[0][0]
        assert prepared.headers["Content-Type"] == "application/json"
        verify_signed_request(prepared.headers, "POST", "/organizations/acme/nodes", json.dumps({"name": "web1"}), KEY)

    def test_put_and_delete(self):
        """Test PUT and DELETE requests"""
        _, call_args = self._send(lambda: self.client.put("nodes/web1", b"raw"))
        assert call_args[0][0].method == "PUT"
        _, call_args = self._send(lambda: self.client.delete("nodes/web1"))
        assert call_args[0][0].method == "DELETE"
        assert call_args[0][0].headers["X-Ops-Content-Hash"] == "2jmj7l5rSw0yVb/vlWAYkK/YBwk="

    def test_get_json(self):
        """Test decoding a JSON response"""
        result, _ = self._send(lambda: self.client.get_json("nodes"), make_response(body={"web1": "url"}))
        assert result == {"web1": "url"}

    def test_get_json_raises_on_error_status(self):
        """Test get_json on a server error"""
        with pytest.raises(ServerCommunicationError) as exc_info:
            self._send(lambda: self.client.get_json("nodes"), make_response(500, b"", reason="Server Error"))
        assert exc_info.value.http_status == 500

    @pytest.mark.parametrize("error, code", [
        (requests.exceptions.Timeout("slow"), "TIMEOUT"),
        (requests.exceptions.ConnectionError("refused"), "CONNECTION_ERROR"),
        (requests.exceptions.TooManyRedirects("loop"), "SERVER_ERROR"),
    ])
    def test_network_errors(self, error, code):
        """Test mapping of requests exceptions"""
        with patch.object(self.client.session.session, "send", side_effect=error):
            with pytest.raises(ServerCommunicationError) as exc_info:
                self.client.get("nodes")
        assert exc_info.value.error_code == code

    def test_signing_error_is_not_wrapped(self):
        """Test that signing errors pass through unchanged"""
        with patch("chef_sdk.signing.chef_signer.private_encrypt", side_effect=RuntimeError("boom")):
            with pytest.raises(SigningError):
                self.client.get("nodes")


class TestConnect:
    """Test client factories"""

    def test_connect_url(self):
        """Test connecting with inline PEM"""
        client = connect_url("https://chef.example.com/organizations/acme", "12.0.0", "admin", KEY.to_pem())
        assert client.config.base_url == "https://chef.example.com/organizations/acme/"
        assert client.user_id == "admin"
        assert client.signing_config.chef_version == "12.0.0"
        assert client.signing_config.private_key == KEY

    def test_connect_url_key_path(self, tmp_path):
        """Test connecting with a key path and default version"""
        key_path = tmp_path / "admin.pem"
        key_path.write_text(KEY.to_pem())
        client = connect_url("https://chef.example.com", "", "admin", str(key_path))
        assert client.signing_config.private_key == KEY
        assert client.signing_config.chef_version == "11.6.0"

    @pytest.mark.parametrize("port, expected", [
        ("443", "https://chef.example.com/"),
        ("80", "http://chef.example.com/"),
        (8443, "http://chef.example.com:8443/"),
    ])
    def test_connect_credentials(self, port, expected):
        """Test URL construction from host and port"""
        client = connect_credentials("chef.example.com", port, "11.6.0", "admin", KEY)
        assert client.config.base_url == expected

    def test_connect_from_knife(self, tmp_path):
        """Test connecting from a knife.rb file"""
        (tmp_path / "admin.pem").write_text(KEY.to_pem())
        knife = tmp_path / "knife.rb"
        knife.write_text(
            "node_name 'admin'\n"
            f"client_key '{tmp_path / 'admin.pem'}'\n"
            "chef_server_url 'https://chef.example.com/organizations/acme'\n"
        )
        client = connect(str(knife), verify_ssl=False)
        assert client.user_id == "admin"
        assert client.config.base_url == "https://chef.example.com/organizations/acme/"
        assert client.config.verify_ssl is False
