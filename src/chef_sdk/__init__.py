"""
Chef API Python SDK
Chef X-Ops request signing and a thin signed client for Chef server APIs
"""

from .version import __version__
from .crypto import (
    PrivateKey,
    CRTParams,
    CRTValue,
    parse_private_key,
    load_private_key,
    load_private_key_file,
    generate_private_key,
    private_encrypt,
    public_decrypt,
)
from .exceptions import (
    ChefSDKError,
    MalformedKeyError,
    MessageTooLargeError,
    EncodingOverflowError,
    ValidationError,
    ConfigurationError,
    ServerCommunicationError,
)
from .config import (
    KnifeConfig,
    parse_config,
    filter_quotes,
    split_whitespace,
)
from .http_client import (
    ChefHttpClient,
    ServerConfig,
    connect,
    connect_credentials,
    connect_url,
    response_body,
    decode_json,
)
from .signing import (
    # Core signing functionality
    ChefSigner,
    create_signer,
    sign_request,
    # Types
    SignableRequest,
    SigningConfig,
    SigningOptions,
    CanonicalRequest,
    ChefSignatureResult,
    ChefHeaders,
    SigningError,
    SigningErrorCodes,
    HttpMethod,
    DEFAULT_CHEF_VERSION,
    SIGNING_PROTOCOL_VERSION,
    # Configuration
    SigningConfigBuilder,
    create_signing_config,
    # Utilities
    hash_and_base64,
    base64_block_encode,
    generate_timestamp,
    normalize_path,
    # Verification
    recover_canonical_request,
    verify_signed_request,
    # HTTP Integration
    create_signing_session,
    SigningSession,
    sign_prepared_request,
)
from . import resources

# Public API exports
__all__ = [
    '__version__',
    # Keys
    'PrivateKey',
    'CRTParams',
    'CRTValue',
    'parse_private_key',
    'load_private_key',
    'load_private_key_file',
    'generate_private_key',
    'private_encrypt',
    'public_decrypt',
    # Exceptions
    'ChefSDKError',
    'MalformedKeyError',
    'MessageTooLargeError',
    'EncodingOverflowError',
    'ValidationError',
    'ConfigurationError',
    'ServerCommunicationError',
    # Configuration
    'KnifeConfig',
    'parse_config',
    'filter_quotes',
    'split_whitespace',
    # HTTP Client
    'ChefHttpClient',
    'ServerConfig',
    'connect',
    'connect_credentials',
    'connect_url',
    'response_body',
    'decode_json',
    'resources',
    # Request Signing - Core
    'ChefSigner',
    'create_signer',
    'sign_request',
    # Request Signing - Types
    'SignableRequest',
    'SigningConfig',
    'SigningOptions',
    'CanonicalRequest',
    'ChefSignatureResult',
    'ChefHeaders',
    'SigningError',
    'SigningErrorCodes',
    'HttpMethod',
    'DEFAULT_CHEF_VERSION',
    'SIGNING_PROTOCOL_VERSION',
    # Request Signing - Configuration
    'SigningConfigBuilder',
    'create_signing_config',
    # Request Signing - Utilities
    'hash_and_base64',
    'base64_block_encode',
    'generate_timestamp',
    'normalize_path',
    # Request Signing - Verification
    'recover_canonical_request',
    'verify_signed_request',
    # Request Signing - HTTP Integration
    'create_signing_session',
    'SigningSession',
    'sign_prepared_request',
]
