"""
HTTP client integration for request signing

This module provides integration between the Chef request signer and the
``requests`` library, enabling automatic signing of outbound requests.
Signing failures are never swallowed: an unsigned request is always
rejected by a Chef server, so the error is raised to the caller instead.
"""

import logging
from typing import Optional

import requests
from requests.models import PreparedRequest
from requests.sessions import Session

from .types import (
    SignableRequest,
    SigningConfig,
    SigningOptions,
    ChefSignatureResult,
    HttpMethod,
    SigningError,
    SigningErrorCodes,
)
from .chef_signer import ChefSigner

logger = logging.getLogger(__name__)

# Keyword arguments of Session.request that belong to Request rather than send()
_REQUEST_KWARGS = ('headers', 'files', 'data', 'params', 'auth', 'cookies', 'hooks', 'json')


def sign_prepared_request(
    prepared_request: PreparedRequest,
    signer: ChefSigner,
    options: Optional[SigningOptions] = None
) -> ChefSignatureResult:
    """
    Sign a prepared request in place.

    Args:
        prepared_request: Prepared request to sign
        signer: Configured signer
        options: Optional signing options

    Returns:
        ChefSignatureResult: Signing result

    Raises:
        SigningError: If the method is not supported or signing fails
    """
    try:
        method = HttpMethod(prepared_request.method.upper())
    except ValueError:
        raise SigningError(
            f"Unsupported HTTP method for signing: {prepared_request.method}",
            SigningErrorCodes.INVALID_METHOD,
            {"method": prepared_request.method}
        )

    original_body = prepared_request.body
    signable_request = SignableRequest(
        method=method,
        url=prepared_request.url,
        headers=prepared_request.headers,
        body=original_body
    )

    result = signer.sign_request(signable_request, options)

    prepared_request.url = signable_request.url
    if signable_request.body is not original_body:
        # Streamed body was read for hashing; send the exact bytes instead
        prepared_request.body = signable_request.body
        prepared_request.headers.pop('Transfer-Encoding', None)
        prepared_request.prepare_content_length(prepared_request.body)

    return result


class SigningSession:
    """
    HTTP session wrapper with automatic request signing capability.

    This class wraps a requests.Session and signs every outgoing request
    with the configured Chef signer.
    """

    def __init__(
        self,
        signing_config: Optional[SigningConfig] = None,
        session: Optional[Session] = None,
        auto_sign: bool = True
    ):
        """
        Initialize signing session.

        Args:
            signing_config: Optional signing configuration
            session: Optional existing requests session to wrap
            auto_sign: Whether to automatically sign requests
        """
        self.session = session or requests.Session()
        self.signing_config = signing_config
        self.signer = ChefSigner(signing_config) if signing_config else None
        self.auto_sign = auto_sign

    def configure_signing(
        self,
        config: SigningConfig,
        auto_sign: bool = True
    ) -> None:
        """
        Configure request signing for this session.

        Args:
            config: Signing configuration
            auto_sign: Whether to automatically sign requests
        """
        self.signing_config = config
        self.signer = ChefSigner(config)
        self.auto_sign = auto_sign
        logger.info(f"Configured request signing for user: {config.user_id}")

    def disable_signing(self) -> None:
        """Disable automatic request signing."""
        self.auto_sign = False
        logger.info("Disabled automatic request signing")

    def enable_signing(self) -> None:
        """Enable automatic request signing (if configured)."""
        if self.signer:
            self.auto_sign = True
            logger.info("Enabled automatic request signing")
        else:
            logger.warning("Cannot enable signing - no signing configuration available")

    def request(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> requests.Response:
        """
        Make HTTP request, signing it first when signing is enabled.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional arguments as accepted by ``requests.Session.request``
                Redirects are not followed unless ``allow_redirects=True``

        Returns:
            requests.Response: HTTP response

        Raises:
            SigningError: If signing fails
        """
        request_kwargs = {key: kwargs.pop(key) for key in _REQUEST_KWARGS if key in kwargs}
        prepared = self.session.prepare_request(
            requests.Request(method=method.upper(), url=url, **request_kwargs)
        )

        if self.auto_sign and self.signer:
            sign_prepared_request(prepared, self.signer)
            logger.debug(f"Signed {method.upper()} request to {prepared.url}")

        settings = self.session.merge_environment_settings(
            prepared.url,
            kwargs.pop('proxies', {}),
            kwargs.pop('stream', None),
            kwargs.pop('verify', None),
            kwargs.pop('cert', None)
        )
        kwargs.update(settings)
        # A redirect would resend headers signed for the original path
        kwargs.setdefault('allow_redirects', False)

        return self.session.send(prepared, **kwargs)

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        """Make PUT request."""
        return self.request('PUT', url, **kwargs)

    def delete(self, url: str, **kwargs) -> requests.Response:
        """Make DELETE request."""
        return self.request('DELETE', url, **kwargs)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()


def create_signing_session(
    signing_config: Optional[SigningConfig] = None,
    auto_sign: bool = True,
    **session_kwargs
) -> SigningSession:
    """
    Create a new signing session.

    Args:
        signing_config: Optional signing configuration
        auto_sign: Whether to automatically sign requests
        **session_kwargs: Attributes to set on the new requests.Session

    Returns:
        SigningSession: Configured signing session
    """
    session = requests.Session()

    for key, value in session_kwargs.items():
        if hasattr(session, key):
            setattr(session, key, value)

    return SigningSession(
        signing_config=signing_config,
        session=session,
        auto_sign=auto_sign
    )
