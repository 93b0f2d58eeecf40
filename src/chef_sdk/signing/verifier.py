"""
Verification of Chef X-Ops signed requests

This module performs the server side of the protocol: it reassembles the
X-Ops-Authorization-N blocks, reverses the RSA transform with the public key,
and checks the recovered canonical request against the actual request.
"""

import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Union

from cryptography.hazmat.primitives.asymmetric import rsa

from ..crypto.rsa_key import PrivateKey
from ..crypto.rsa_raw import public_decrypt
from ..exceptions import ValidationError
from .types import CanonicalRequest, ChefHeaders, RequestBody, SIGNING_PROTOCOL_VERSION
from .utils import hash_and_base64, normalize_path, TIMESTAMP_FORMAT
from .canonical_request import parse_canonical_request

logger = logging.getLogger(__name__)

PublicKeyLike = Union[PrivateKey, rsa.RSAPublicKey]


def find_header_case_insensitive(headers: Mapping[str, str], name: str) -> Optional[str]:
    """
    Look up a header value ignoring name casing.

    Args:
        headers: Header mapping
        name: Header name

    Returns:
        Optional[str]: Header value, or None if absent
    """
    target = name.lower()
    for key, value in headers.items():
        if key.lower() == target:
            return value
    return None


def extract_authorization_blocks(headers: Mapping[str, str]) -> List[str]:
    """
    Collect X-Ops-Authorization-1..N in order.

    Args:
        headers: Request headers

    Returns:
        list: Signature blocks

    Raises:
        ValidationError: If no authorization header is present
    """
    blocks = []
    index = 1
    while True:
        value = find_header_case_insensitive(headers, f"{ChefHeaders.AUTHORIZATION_PREFIX}{index}")
        if value is None:
            break
        blocks.append(value)
        index += 1

    if not blocks:
        raise ValidationError(
            "Missing X-Ops-Authorization headers",
            "MISSING_AUTHORIZATION"
        )

    return blocks


def _public_numbers(key: PublicKeyLike):
    if isinstance(key, PrivateKey):
        return key.modulus, key.public_exponent
    numbers = key.public_numbers()
    return numbers.n, numbers.e


def recover_canonical_request(headers: Mapping[str, str], public_key: PublicKeyLike) -> str:
    """
    Recover the signed canonical request string from request headers.

    Args:
        headers: Signed request headers
        public_key: Key of the signing user

    Returns:
        str: Canonical request that was signed

    Raises:
        ValidationError: If the signature cannot be decoded or verified
    """
    sign = find_header_case_insensitive(headers, ChefHeaders.SIGN)
    if sign != f"version={SIGNING_PROTOCOL_VERSION}":
        raise ValidationError(
            f"Unsupported signing protocol: {sign}",
            "UNSUPPORTED_PROTOCOL",
            {"x_ops_sign": sign}
        )

    encoded = ''.join(extract_authorization_blocks(headers))
    try:
        signature = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            f"Authorization headers are not valid base64: {e}",
            "INVALID_SIGNATURE"
        ) from e

    modulus, exponent = _public_numbers(public_key)
    message = public_decrypt(modulus, exponent, signature)

    try:
        return message.decode('utf-8')
    except UnicodeDecodeError as e:
        raise ValidationError("Recovered canonical request is not UTF-8", "INVALID_SIGNATURE") from e


def verify_signed_request(
    headers: Mapping[str, str],
    method: str,
    path: str,
    body: RequestBody,
    public_key: PublicKeyLike,
    max_clock_skew: Optional[int] = None,
    now: Optional[datetime] = None
) -> CanonicalRequest:
    """
    Verify a signed request against its headers.

    Args:
        headers: Request headers including the X-Ops set
        method: HTTP method the request was sent with
        path: Request path as received
        body: Request body as received
        public_key: Key of the user named in X-Ops-Userid
        max_clock_skew: Optional allowed difference in seconds between X-Ops-Timestamp and ``now``
        now: Reference time for the skew check (defaults to the current time)

    Returns:
        CanonicalRequest: The verified canonical values

    Raises:
        ValidationError: If any part of the request does not match its signature
    """
    canonical = parse_canonical_request(recover_canonical_request(headers, public_key))

    expected: Dict[str, Optional[str]] = {
        "method": method.upper(),
        "hashed_path": hash_and_base64(normalize_path(path)),
        "content_hash": hash_and_base64(body),
        "timestamp": find_header_case_insensitive(headers, ChefHeaders.TIMESTAMP),
        "user_id": find_header_case_insensitive(headers, ChefHeaders.USER_ID),
    }

    for field_name, value in expected.items():
        if getattr(canonical, field_name) != value:
            logger.debug(f"Signed request mismatch on {field_name}")
            raise ValidationError(
                f"Signed {field_name} does not match the request",
                "SIGNATURE_MISMATCH",
                {"field": field_name}
            )

    content_hash_header = find_header_case_insensitive(headers, ChefHeaders.CONTENT_HASH)
    if content_hash_header != canonical.content_hash:
        raise ValidationError(
            "X-Ops-Content-Hash header does not match the request body",
            "SIGNATURE_MISMATCH",
            {"field": "content_hash"}
        )

    if max_clock_skew is not None:
        _check_clock_skew(canonical.timestamp, max_clock_skew, now)

    return canonical


def _check_clock_skew(timestamp: str, max_clock_skew: int, now: Optional[datetime]) -> None:
    try:
        signed_at = datetime.strptime(timestamp, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValidationError(f"Invalid X-Ops-Timestamp: {timestamp}", "INVALID_TIMESTAMP") from e

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)

    skew = abs((reference - signed_at).total_seconds())
    if skew > max_clock_skew:
        raise ValidationError(
            f"Request timestamp is {skew:.0f}s away from server time",
            "TIMESTAMP_SKEW",
            {"skew_seconds": skew, "max_clock_skew": max_clock_skew}
        )
