"""
Chef API Python SDK - Request Signing Module

Chef X-Ops request signing, protocol version 1.0. This module signs
outbound requests for Chef-Server-compatible APIs and verifies signed
requests on the receiving side.
"""

from .types import (
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
)

from .chef_signer import (
    ChefSigner,
    create_signer,
    sign_request,
)

from .canonical_request import (
    build_canonical_request,
    create_canonical_request,
    canonical_request_to_string,
    parse_canonical_request,
    validate_canonical_request,
)

from .signing_config import (
    SigningConfigBuilder,
    create_signing_config,
    validate_signing_config,
)

from .utils import (
    hash_and_base64,
    base64_block_encode,
    generate_timestamp,
    format_iso8601_timestamp,
    validate_timestamp,
    normalize_path,
    parse_url,
)

from .verifier import (
    recover_canonical_request,
    verify_signed_request,
)

from .integration import (
    create_signing_session,
    SigningSession,
    sign_prepared_request,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'ChefSigner',
    'create_signer',
    'sign_request',
    # Types
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
    # Canonical request
    'build_canonical_request',
    'create_canonical_request',
    'canonical_request_to_string',
    'parse_canonical_request',
    'validate_canonical_request',
    # Configuration
    'SigningConfigBuilder',
    'create_signing_config',
    'validate_signing_config',
    # Utilities
    'hash_and_base64',
    'base64_block_encode',
    'generate_timestamp',
    'format_iso8601_timestamp',
    'validate_timestamp',
    'normalize_path',
    'parse_url',
    # Verification
    'recover_canonical_request',
    'verify_signed_request',
    # HTTP Integration
    'create_signing_session',
    'SigningSession',
    'sign_prepared_request',
]
