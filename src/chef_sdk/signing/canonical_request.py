"""
Canonical request construction for Chef request signing

The canonical request is the exact text that gets signed: five ``Label:value``
lines joined by a single newline, with no trailing newline. Any change in
labels, casing, order or whitespace yields a signature the server rejects.
"""

from typing import List

from .types import (
    CanonicalRequest,
    RequestBody,
    SigningError,
    SigningErrorCodes,
)
from .utils import hash_and_base64, normalize_path
from ..exceptions import ValidationError

CANONICAL_LABELS = (
    "Method",
    "Hashed Path",
    "X-Ops-Content-Hash",
    "X-Ops-Timestamp",
    "X-Ops-UserId",
)


def build_canonical_request(
    method: str,
    hashed_path: str,
    content_hash: str,
    timestamp: str,
    user_id: str
) -> str:
    """
    Build the canonical request string.

    Args:
        method: HTTP method
        hashed_path: Digest of the normalized path
        content_hash: Digest of the body
        timestamp: X-Ops-Timestamp value
        user_id: X-Ops-Userid value

    Returns:
        str: Five-line canonical string
    """
    values = (method, hashed_path, content_hash, timestamp, user_id)
    return '\n'.join(f"{label}:{value}" for label, value in zip(CANONICAL_LABELS, values))


def canonical_request_to_string(request: CanonicalRequest) -> str:
    """Render a ``CanonicalRequest`` as the string that gets signed."""
    return build_canonical_request(
        request.method,
        request.hashed_path,
        request.content_hash,
        request.timestamp,
        request.user_id,
    )


def create_canonical_request(
    method: str,
    path: str,
    body: RequestBody,
    timestamp: str,
    user_id: str
) -> CanonicalRequest:
    """
    Normalize and hash request parts into a ``CanonicalRequest``.

    Args:
        method: HTTP method
        path: Raw request path (query string excluded)
        body: Request body; must already be bytes or text, not a stream
        timestamp: Timestamp for this request
        user_id: Signing user

    Returns:
        CanonicalRequest: Immutable canonical values

    Raises:
        SigningError: If hashing fails
    """
    if not method:
        raise SigningError(
            "HTTP method cannot be empty",
            SigningErrorCodes.CANONICAL_REQUEST_FAILED
        )

    return CanonicalRequest(
        method=method.upper(),
        hashed_path=hash_and_base64(normalize_path(path)),
        content_hash=hash_and_base64(body),
        timestamp=timestamp,
        user_id=user_id,
    )


def parse_canonical_request(text: str) -> CanonicalRequest:
    """
    Parse a canonical request string back into its values.

    Args:
        text: Canonical request string

    Returns:
        CanonicalRequest: Parsed values

    Raises:
        ValidationError: If the layout is not the exact five-line format
    """
    if not isinstance(text, str):
        raise ValidationError("Canonical request must be a string", "INVALID_CANONICAL_REQUEST")

    lines = text.split('\n')
    if len(lines) != len(CANONICAL_LABELS):
        raise ValidationError(
            f"Canonical request must have {len(CANONICAL_LABELS)} lines, got {len(lines)}",
            "INVALID_CANONICAL_REQUEST",
            {"line_count": len(lines)}
        )

    values: List[str] = []
    for label, line in zip(CANONICAL_LABELS, lines):
        prefix = f"{label}:"
        if not line.startswith(prefix):
            raise ValidationError(
                f"Expected line starting with '{prefix}'",
                "INVALID_CANONICAL_REQUEST",
                {"line": line}
            )
        values.append(line[len(prefix):])

    return CanonicalRequest(*values)


def validate_canonical_request(text: str) -> bool:
    """
    Check whether ``text`` has the canonical request layout.

    Args:
        text: Candidate canonical string

    Returns:
        bool: True if the layout is valid
    """
    try:
        parse_canonical_request(text)
    except ValidationError:
        return False
    return True
