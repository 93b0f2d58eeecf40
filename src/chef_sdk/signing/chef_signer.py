"""
Chef X-Ops request signer (protocol version 1.0)

This module provides the main signer: it normalizes the request path, hashes
path and body, builds the canonical request, signs it with the raw RSA
transform and writes the full set of X-Ops headers onto the request.
"""

import logging
from typing import Dict, List, Optional

from ..crypto.rsa_raw import private_encrypt
from ..exceptions import ChefSDKError
from .types import (
    SignableRequest,
    SigningConfig,
    SigningOptions,
    ChefSignatureResult,
    CanonicalRequest,
    ChefHeaders,
    SigningError,
    SigningErrorCodes,
    SIGNING_PROTOCOL_VERSION,
)
from .utils import (
    base64_block_encode,
    generate_timestamp,
    normalize_path,
    parse_url,
    read_body,
    replace_url_path,
    validate_timestamp,
    PerformanceTimer,
)
from .canonical_request import create_canonical_request, canonical_request_to_string
from .signing_config import validate_signing_config

logger = logging.getLogger(__name__)

SLOW_SIGNING_THRESHOLD_MS = 50


class ChefSigner:
    """
    Chef request signer

    Holds a validated ``SigningConfig``; the key inside it is immutable, so a
    single signer can be shared between threads.
    """

    def __init__(self, config: SigningConfig):
        """
        Initialize the signer with configuration.

        Args:
            config: Signing configuration

        Raises:
            SigningError: If configuration is invalid
        """
        validate_signing_config(config)
        self.config = config

    def sign_request(
        self,
        request: SignableRequest,
        options: Optional[SigningOptions] = None
    ) -> ChefSignatureResult:
        """
        Sign a request in place.

        The request URL is rewritten with the normalized path and the X-Ops
        headers are added to ``request.headers``. A file-like body is read and
        replaced by its bytes so that what is sent is what was hashed.

        Args:
            request: Request to sign
            options: Optional per-request signing options

        Returns:
            ChefSignatureResult: Headers and canonical request

        Raises:
            MessageTooLargeError: If the key is too small for the canonical request
            EncodingOverflowError: If the padded block exceeds the modulus
            SigningError: If any other signing step fails
        """
        timer = PerformanceTimer()

        try:
            timestamp = self._resolve_timestamp(options)

            path = normalize_path(parse_url(request.url)['pathname'])
            request.url = replace_url_path(request.url, path)

            body = read_body(request.body)
            if request.body is not None and not isinstance(request.body, (str, bytes)):
                request.body = body

            canonical = create_canonical_request(
                request.method.value,
                path,
                body,
                timestamp,
                self.config.user_id
            )
            canonical_string = canonical_request_to_string(canonical)

            signature = private_encrypt(self.config.private_key, canonical_string.encode('utf-8'))
            blocks = base64_block_encode(signature)

            headers = self.build_headers(canonical, blocks)
            _remove_signing_headers(request.headers, headers)
            request.headers.update(headers)

        except (ChefSDKError, SigningError):
            raise
        except Exception as e:
            raise SigningError(
                f"Request signing failed: {e}",
                SigningErrorCodes.SIGNING_FAILED,
                {"original_error": str(e)}
            )

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > SLOW_SIGNING_THRESHOLD_MS:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <{SLOW_SIGNING_THRESHOLD_MS}ms)")

        logger.debug(f"Signed {request.method.value} {path} as {self.config.user_id}")

        return ChefSignatureResult(
            headers=headers,
            canonical_request=canonical_string,
            authorization_blocks=blocks,
            normalized_path=path
        )

    def build_headers(self, canonical: CanonicalRequest, blocks: List[str]) -> Dict[str, str]:
        """
        Assemble the protocol headers for a signed request.

        Args:
            canonical: Canonical values that were signed
            blocks: Base64 signature blocks in order

        Returns:
            dict: Header name to value
        """
        headers = {
            ChefHeaders.ACCEPT: 'application/json',
            ChefHeaders.CHEF_VERSION: self.config.chef_version,
            ChefHeaders.TIMESTAMP: canonical.timestamp,
            ChefHeaders.USER_ID: self.config.user_id,
            ChefHeaders.SIGN: f'version={SIGNING_PROTOCOL_VERSION}',
            ChefHeaders.CONTENT_HASH: canonical.content_hash,
        }

        for index, block in enumerate(blocks):
            headers[f'{ChefHeaders.AUTHORIZATION_PREFIX}{index + 1}'] = block

        return headers

    def _resolve_timestamp(self, options: Optional[SigningOptions]) -> str:
        """Pick the timestamp from options, the configured generator or the clock."""
        if options is not None and options.timestamp is not None:
            timestamp = options.timestamp
        else:
            timestamp_gen = self.config.timestamp_generator or generate_timestamp
            timestamp = timestamp_gen()

        if not validate_timestamp(timestamp):
            raise SigningError(
                f"Invalid timestamp: {timestamp}",
                SigningErrorCodes.INVALID_TIMESTAMP,
                {"timestamp": timestamp}
            )

        return timestamp


def _remove_signing_headers(headers, new_headers: Dict[str, str]) -> None:
    """Drop headers, in any casing, that a fresh signature replaces."""
    prefix = ChefHeaders.AUTHORIZATION_PREFIX.lower()
    replaced = {name.lower() for name in new_headers}
    stale = [
        name for name in headers
        if name.lower() in replaced or name.lower().startswith(prefix)
    ]
    for name in stale:
        del headers[name]


def create_signer(config: SigningConfig) -> ChefSigner:
    """
    Create a new Chef signer.

    Args:
        config: Signing configuration

    Returns:
        ChefSigner: Configured signer instance
    """
    return ChefSigner(config)


def sign_request(
    request: SignableRequest,
    config: SigningConfig,
    options: Optional[SigningOptions] = None
) -> ChefSignatureResult:
    """
    Sign a request with the given configuration.

    Args:
        request: Request to sign
        config: Signing configuration
        options: Optional signing options

    Returns:
        ChefSignatureResult: Signing result
    """
    signer = create_signer(config)
    return signer.sign_request(request, options)
