"""
Type definitions for request signing functionality

This module provides type definitions and data classes for the Chef
X-Ops request signing protocol (version 1.0).
"""

from typing import Dict, List, MutableMapping, Optional, Union, Callable, Any, IO
from dataclasses import dataclass
from enum import Enum

from ..crypto.rsa_key import PrivateKey


SIGNING_PROTOCOL_VERSION = "1.0"
DEFAULT_CHEF_VERSION = "11.6.0"
AUTHORIZATION_BLOCK_WIDTH = 60


class HttpMethod(str, Enum):
    """HTTP methods supported for signing"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ChefHeaders:
    """Header names written by the signer"""
    ACCEPT = "Accept"
    CHEF_VERSION = "X-Chef-Version"
    TIMESTAMP = "X-Ops-Timestamp"
    USER_ID = "X-Ops-Userid"
    SIGN = "X-Ops-Sign"
    CONTENT_HASH = "X-Ops-Content-Hash"
    AUTHORIZATION_PREFIX = "X-Ops-Authorization-"


@dataclass
class SignableRequest:
    """
    Outbound request to be signed

    Attributes:
        method: HTTP method (GET, POST, etc.)
        url: Complete request URL
        headers: Request headers as key-value pairs
        body: Optional request body (string, bytes or a readable file object)
    """
    method: HttpMethod
    url: str
    headers: MutableMapping[str, str]
    body: Optional[Union[str, bytes, IO]] = None

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.url:
            raise ValueError("Request URL cannot be empty")

        if not isinstance(self.headers, MutableMapping):
            raise ValueError("Headers must be a mutable mapping")

        if not isinstance(self.method, HttpMethod):
            self.method = HttpMethod(str(self.method).upper())


@dataclass(frozen=True)
class CanonicalRequest:
    """
    The five values that make up the signed string

    Attributes:
        method: Upper-case HTTP method
        hashed_path: Digest of the normalized request path
        content_hash: Digest of the request body
        timestamp: ISO-8601 UTC timestamp
        user_id: Client or user name
    """
    method: str
    hashed_path: str
    content_hash: str
    timestamp: str
    user_id: str


@dataclass
class SigningConfig:
    """
    Configuration for request signing

    Attributes:
        user_id: Chef client or user name (``node_name`` in knife.rb)
        private_key: RSA private key registered for ``user_id``
        chef_version: Value sent in X-Chef-Version
        timestamp_generator: Optional custom timestamp generator function
    """
    user_id: str
    private_key: PrivateKey
    chef_version: str = DEFAULT_CHEF_VERSION
    timestamp_generator: Optional[Callable[[], str]] = None

    def __post_init__(self):
        """Validate signing configuration"""
        if not self.user_id:
            raise ValueError("User ID cannot be empty")

        if not isinstance(self.private_key, PrivateKey):
            raise ValueError("Private key must be a PrivateKey instance")

        if not self.chef_version:
            raise ValueError("Chef version cannot be empty")


@dataclass
class SigningOptions:
    """
    Signing options for individual requests

    Attributes:
        timestamp: Custom timestamp for this request
    """
    timestamp: Optional[str] = None


@dataclass
class ChefSignatureResult:
    """
    Generated signature result

    Attributes:
        headers: All headers that were added to the request
        canonical_request: Canonical string that was signed
        authorization_blocks: Base64 signature split into 60-character blocks
        normalized_path: Path that was hashed and sent
    """
    headers: Dict[str, str]
    canonical_request: str
    authorization_blocks: List[str]
    normalized_path: str

    def __post_init__(self):
        """Validate signature result"""
        if not self.authorization_blocks:
            raise ValueError("Signature cannot be empty")

        if not isinstance(self.headers, dict):
            raise ValueError("Headers must be a dictionary")


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    INVALID_USER_ID = "INVALID_USER_ID"

    # Request errors
    INVALID_URL = "INVALID_URL"
    INVALID_METHOD = "INVALID_METHOD"
    INVALID_BODY = "INVALID_BODY"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"
    CANONICAL_REQUEST_FAILED = "CANONICAL_REQUEST_FAILED"
    DIGEST_CALCULATION_FAILED = "DIGEST_CALCULATION_FAILED"

    # Validation errors
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"


TimestampGenerator = Callable[[], str]
HeaderDict = Dict[str, str]
RequestBody = Union[str, bytes, IO, None]
