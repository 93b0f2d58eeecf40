"""
Utility functions for request signing

This module provides the small pure helpers of the Chef signing protocol:
content hashing, timestamp handling, path normalization, URL parsing and
splitting of the base64 signature into header-sized blocks.
"""

import re
import time
import base64
import hashlib
import posixpath
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

from .types import (
    SigningError,
    SigningErrorCodes,
    RequestBody,
    AUTHORIZATION_BLOCK_WIDTH,
)

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'
_TIMESTAMP_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$')
_REPEATED_SLASHES = re.compile(r'/+')


def read_body(content: RequestBody) -> bytes:
    """
    Read a request body into bytes.

    Args:
        content: String, bytes, readable file object or None

    Returns:
        bytes: Body content; empty for None

    Raises:
        SigningError: If the body type is not supported
    """
    if content is None:
        return b""

    if isinstance(content, str):
        return content.encode('utf-8')

    if isinstance(content, (bytes, bytearray)):
        return bytes(content)

    if hasattr(content, 'read'):
        data = content.read()
        if isinstance(data, str):
            data = data.encode('utf-8')
        return data

    raise SigningError(
        f"Content must be string, bytes, file object or None, got {type(content)}",
        SigningErrorCodes.INVALID_BODY,
        {"content_type": str(type(content))}
    )


def hash_and_base64(content: RequestBody) -> str:
    """
    Hash content with SHA-1 and base64-encode the digest.

    Used both for the request path and the request body.

    Args:
        content: Content to hash (None hashes the empty string)

    Returns:
        str: 28-character base64 digest
    """
    digest = hashlib.sha1(read_body(content)).digest()
    return base64.b64encode(digest).decode('ascii')


def base64_block_encode(content: bytes, width: int = AUTHORIZATION_BLOCK_WIDTH) -> List[str]:
    """
    Base64-encode content and split it into fixed-width blocks.

    The last block holds the remainder and may be shorter than ``width``.

    Args:
        content: Bytes to encode
        width: Block width in characters

    Returns:
        list: Ordered blocks
    """
    if width <= 0:
        raise ValueError("Block width must be positive")

    encoded = base64.b64encode(content).decode('ascii')
    return [encoded[i:i + width] for i in range(0, len(encoded), width)]


def generate_timestamp() -> str:
    """
    Generate the current UTC time as an ISO-8601 string.

    Returns:
        str: Timestamp like ``2013-10-27T20:45:25Z``
    """
    return format_iso8601_timestamp()


def format_iso8601_timestamp(value: Optional[datetime] = None) -> str:
    """
    Format an instant as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC.

    Args:
        value: Datetime to format (uses current time if None); naive values are taken as UTC

    Returns:
        str: Formatted timestamp
    """
    if value is None:
        return time.strftime(TIMESTAMP_FORMAT, time.gmtime())

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def validate_timestamp(timestamp: str) -> bool:
    """
    Validate an X-Ops-Timestamp value.

    Args:
        timestamp: Timestamp string

    Returns:
        bool: True if the timestamp is a real UTC instant in the expected format
    """
    if not isinstance(timestamp, str) or not _TIMESTAMP_PATTERN.match(timestamp):
        return False

    try:
        datetime.strptime(timestamp, TIMESTAMP_FORMAT)
    except ValueError:
        return False

    return True


def normalize_path(path: str) -> str:
    """
    Normalize a request path the way the Chef server expects.

    Repeated slashes are collapsed, ``.`` and ``..`` segments are resolved,
    and a trailing slash is dropped.

    Args:
        path: Raw URL path

    Returns:
        str: Normalized absolute path
    """
    if not path:
        return '/'

    path = _REPEATED_SLASHES.sub('/', path)
    if not path.startswith('/'):
        path = '/' + path

    return posixpath.normpath(path)


def parse_url(url: str) -> Dict[str, str]:
    """
    Parse URL to extract components needed for signing.

    Args:
        url: URL string to parse

    Returns:
        dict: Dictionary with parsed URL components:
            - origin: scheme + netloc
            - pathname: path component
            - search: query string (including ?)

    Raises:
        SigningError: If URL format is invalid
    """
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise SigningError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )

    if not parsed.scheme or not parsed.netloc:
        raise SigningError(
            f"Invalid URL format: {url}",
            SigningErrorCodes.INVALID_URL,
            {"url": url}
        )

    if parsed.scheme not in ('http', 'https'):
        raise SigningError(
            f"Unsupported URL scheme: {parsed.scheme}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "scheme": parsed.scheme}
        )

    return {
        "origin": f"{parsed.scheme}://{parsed.netloc}",
        "pathname": parsed.path or "/",
        "search": f"?{parsed.query}" if parsed.query else "",
    }


def replace_url_path(url: str, path: str) -> str:
    """
    Return ``url`` with its path replaced, keeping query and fragment.

    Args:
        url: Original URL
        path: New path

    Returns:
        str: Rewritten URL
    """
    parsed = urlsplit(url)
    return urlunsplit((parsed.scheme, parsed.netloc, path, parsed.query, parsed.fragment))


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def reset(self) -> None:
        """Reset the timer."""
        self.start_time = time.perf_counter()
