"""
HTTP client for Chef server communication

This module provides the transport used by the resource helpers: a thin
wrapper around ``requests`` that signs every request with the Chef X-Ops
protocol before it is sent. Requests are not retried.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import urljoin, urlparse

import requests

from .config.knife_config import parse_config
from .crypto.rsa_key import PrivateKey, load_private_key
from .exceptions import ServerCommunicationError, ValidationError
from .signing.integration import SigningSession
from .signing.types import SigningConfig, DEFAULT_CHEF_VERSION
from .version import __version__

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Configuration for Chef server connection."""
    base_url: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self):
        """Validate server configuration."""
        if not self.base_url:
            raise ValidationError("Server base_url cannot be empty")

        # Endpoints are joined relative to base_url
        if not self.base_url.endswith('/'):
            self.base_url += '/'

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValidationError(f"Invalid server URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")


def response_body(response: requests.Response) -> bytes:
    """
    Return the body of a successful response.

    Args:
        response: HTTP response

    Returns:
        bytes: Raw response body

    Raises:
        ServerCommunicationError: If the status is anything but 200
    """
    if response.status_code != 200:
        message = f'HTTP {response.status_code}: {response.reason}'
        try:
            error_data = response.json()
            # Chef servers report {"error": ["..."]}
            if isinstance(error_data, dict) and 'error' in error_data:
                errors = error_data['error']
                if isinstance(errors, list):
                    errors = '; '.join(str(e) for e in errors)
                message = f'HTTP {response.status_code}: {errors}'
        except ValueError:
            pass

        raise ServerCommunicationError(
            f"Server request failed: {message}",
            error_code='HTTP_ERROR',
            http_status=response.status_code,
            details={'status_code': response.status_code, 'url': response.url}
        )

    return response.content


def decode_json(response: requests.Response) -> Any:
    """
    Decode the JSON body of a successful response.

    Raises:
        ServerCommunicationError: On non-200 status or invalid JSON
    """
    body = response_body(response)
    try:
        return json.loads(body)
    except ValueError as e:
        raise ServerCommunicationError(
            f"Invalid JSON response: {e}",
            error_code='INVALID_RESPONSE',
            http_status=response.status_code
        )


class ChefHttpClient:
    """
    HTTP client for communicating with a Chef server.

    Every request goes through a ``SigningSession`` and therefore carries
    the X-Ops authentication headers.
    """

    def __init__(
        self,
        config: ServerConfig,
        signing_config: SigningConfig,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the HTTP client.

        Args:
            config: Server configuration settings
            signing_config: Credentials used to sign requests
            session: Optional requests session to wrap
        """
        self.config = config
        self.signing_config = signing_config
        self.session = SigningSession(signing_config, session=session)
        self.session.session.headers.update({
            'User-Agent': f'chef-api-python-sdk/{__version__}'
        })

        logger.info(f"Initialized Chef HTTP client for server: {config.base_url}")

    @property
    def user_id(self) -> str:
        return self.signing_config.user_id

    def request_url(self, endpoint: str) -> str:
        """Resolve an endpoint against the server base URL."""
        return urljoin(self.config.base_url, endpoint.lstrip('/'))

    def request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make a signed HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path, relative to the base URL
            **kwargs: Additional arguments for requests

        Returns:
            requests.Response: The raw response, whatever its status

        Raises:
            ServerCommunicationError: On network errors
            SigningError: If the request cannot be signed
        """
        url = self.request_url(endpoint)

        kwargs.setdefault('timeout', self.config.timeout)
        kwargs.setdefault('verify', self.config.verify_ssl)

        try:
            logger.debug(f"Making {method.upper()} request to {url}")
            return self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout:
            logger.error(f"{method.upper()} {url} timed out")
            raise ServerCommunicationError(f"Request timeout after {self.config.timeout} seconds", error_code='TIMEOUT')
        except requests.exceptions.ConnectionError as e:
            logger.error(f"{method.upper()} {url} failed to connect: {e}")
            raise ServerCommunicationError(f"Connection error: {e}", error_code='CONNECTION_ERROR')
        except requests.exceptions.RequestException as e:
            logger.error(f"{method.upper()} {url} failed: {e}")
            raise ServerCommunicationError(f"Request failed: {e}")

    def get(self, endpoint: str) -> requests.Response:
        """Make a signed GET request."""
        return self.request('GET', endpoint)

    def get_with_params(self, endpoint: str, params: Dict[str, Any]) -> requests.Response:
        """Make a signed GET request with query parameters."""
        return self.request('GET', endpoint, params=params)

    def post(self, endpoint: str, body: Optional[Union[str, bytes, Dict[str, Any]]] = None) -> requests.Response:
        """Make a signed POST request; dict bodies are sent as JSON."""
        return self.request('POST', endpoint, **self._body_kwargs(body))

    def put(self, endpoint: str, body: Optional[Union[str, bytes, Dict[str, Any]]] = None) -> requests.Response:
        """Make a signed PUT request; dict bodies are sent as JSON."""
        return self.request('PUT', endpoint, **self._body_kwargs(body))

    def delete(self, endpoint: str) -> requests.Response:
        """Make a signed DELETE request."""
        return self.request('DELETE', endpoint)

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET an endpoint and decode its JSON body."""
        response = self.get_with_params(endpoint, params) if params else self.get(endpoint)
        return decode_json(response)

    @staticmethod
    def _body_kwargs(body) -> Dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, dict):
            return {
                'data': json.dumps(body),
                'headers': {'Content-Type': 'application/json'},
            }
        return {'data': body}

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _load_key(key: Union[str, bytes, PrivateKey]) -> PrivateKey:
    if isinstance(key, PrivateKey):
        return key
    return load_private_key(key)


def connect(
    config_file: Optional[str] = None,
    chef_version: str = DEFAULT_CHEF_VERSION,
    **server_kwargs
) -> ChefHttpClient:
    """
    Create a client from a knife.rb file.

    Args:
        config_file: Path to knife.rb; searched for when omitted
        chef_version: Value sent in X-Chef-Version
        **server_kwargs: Extra ``ServerConfig`` fields (timeout, verify_ssl)

    Returns:
        ChefHttpClient: Client for ``chef_server_url`` signing as ``node_name``

    Raises:
        ConfigurationError: If knife.rb is missing or incomplete
        MalformedKeyError: If ``client_key`` cannot be loaded
    """
    knife = parse_config(config_file)
    signing_config = knife.to_signing_config(chef_version)
    return ChefHttpClient(ServerConfig(knife.chef_server_url, **server_kwargs), signing_config)


def connect_credentials(
    host: str,
    port: Union[str, int],
    version: str,
    user_id: str,
    key: Union[str, bytes, PrivateKey],
    **server_kwargs
) -> ChefHttpClient:
    """
    Create a client from explicit host and port.

    Port 443 selects https and port 80 selects http, with the port left
    out of the URL. Any other port is used with plain http.

    Args:
        host: Server host name
        port: Server port
        version: Value sent in X-Chef-Version
        user_id: Client or user name
        key: PrivateKey, inline PEM, or path to a PEM file

    Returns:
        ChefHttpClient: Configured client
    """
    port = str(port)
    if port == '443':
        url = f'https://{host}'
    elif port == '80':
        url = f'http://{host}'
    else:
        url = f'http://{host}:{port}'

    return connect_url(url, version, user_id, key, **server_kwargs)


def connect_url(
    url: str,
    version: str,
    user_id: str,
    key: Union[str, bytes, PrivateKey],
    **server_kwargs
) -> ChefHttpClient:
    """
    Create a client for a full server URL.

    Args:
        url: Chef server URL, e.g. ``https://chef.example.com/organizations/acme``
        version: Value sent in X-Chef-Version
        user_id: Client or user name
        key: PrivateKey, inline PEM, or path to a PEM file

    Returns:
        ChefHttpClient: Configured client
    """
    signing_config = SigningConfig(
        user_id=user_id,
        private_key=_load_key(key),
        chef_version=version or DEFAULT_CHEF_VERSION
    )
    return ChefHttpClient(ServerConfig(url, **server_kwargs), signing_config)
