"""
Raw RSA private-key transform with PKCS#1 v1.5 block type 1 padding

This is the equivalent of OpenSSL's ``RSA_private_encrypt`` with
``RSA_PKCS1_PADDING``, which is what Chef's protocol 1.0 signs with: the
canonical request string itself (not a DigestInfo) is padded and raised to
the private exponent.
"""

from typing import Union

from .rsa_key import PrivateKey
from ..exceptions import (
    EncodingOverflowError,
    MalformedKeyError,
    MessageTooLargeError,
    ValidationError,
)

# 0x00 0x01 header, 0x00 separator and at least 8 bytes of 0xFF filler
PKCS1_OVERHEAD = 11
MIN_PADDING_LENGTH = 8


def max_message_length(key: PrivateKey) -> int:
    """Largest message, in bytes, that ``key`` can sign."""
    return key.size_in_bytes - PKCS1_OVERHEAD


def pad_type1(message: bytes, k: int) -> bytes:
    """
    Build the PKCS#1 v1.5 block type 1 encoding of ``message``.

    Args:
        message: Data to pad
        k: Byte length of the modulus

    Returns:
        bytes: ``00 01 FF..FF 00 || message``, exactly ``k`` bytes

    Raises:
        MessageTooLargeError: If ``message`` is longer than ``k - 11`` bytes
    """
    t_len = len(message)
    if t_len > k - PKCS1_OVERHEAD:
        raise MessageTooLargeError(
            f"Message of {t_len} bytes exceeds key capacity of {k - PKCS1_OVERHEAD} bytes",
            details={"message_length": t_len, "max_length": k - PKCS1_OVERHEAD}
        )

    return b'\x00\x01' + b'\xff' * (k - 3 - t_len) + b'\x00' + message


def _exp_direct(c: int, key: PrivateKey) -> int:
    return pow(c, key.private_exponent, key.modulus)


def _exp_crt(c: int, key: PrivateKey) -> int:
    """
    Compute c^D mod N from the CRT parameters.

    Two-prime recombination followed by Garner's algorithm for every
    additional prime. The result is always in [0, N).
    """
    crt = key.crt
    p, q = key.primes[0], key.primes[1]

    m1 = pow(c, crt.dp, p)
    m2 = pow(c, crt.dq, q)
    # Python's % is non-negative for a positive modulus
    h = (crt.qinv * (m1 - m2)) % p
    m = m2 + h * q

    for prime, value in zip(key.primes[2:], crt.crt_values):
        mi = pow(c, value.exponent, prime)
        h = ((mi - m) * value.coefficient) % prime
        m += h * value.r

    return m


def private_encrypt(key: PrivateKey, message: Union[bytes, str], use_crt: bool = True) -> bytes:
    """
    Sign ``message`` with the raw RSA private-key transform.

    Args:
        key: RSA private key
        message: Data to sign (str is UTF-8 encoded)
        use_crt: Use the CRT parameters when the key has them

    Returns:
        bytes: Signature, exactly ``key.size_in_bytes`` long

    Raises:
        MessageTooLargeError: If ``message`` exceeds ``k - 11`` bytes
        EncodingOverflowError: If the padded block is not below the modulus
        MalformedKeyError: If the key is unusable
    """
    if not isinstance(key, PrivateKey):
        raise MalformedKeyError(
            "Signing key must be a PrivateKey instance",
            details={"key_type": type(key).__name__}
        )

    if isinstance(message, str):
        message = message.encode('utf-8')

    k = key.size_in_bytes
    em = pad_type1(message, k)

    c = int.from_bytes(em, 'big')
    if c >= key.modulus:
        raise EncodingOverflowError(
            "Padded message is not smaller than the key modulus",
            details={"key_size": key.key_size}
        )

    if use_crt and key.crt is not None:
        m = _exp_crt(c, key)
    else:
        m = _exp_direct(c, key)

    return m.to_bytes(k, 'big')


def public_decrypt(modulus: int, public_exponent: int, signature: bytes) -> bytes:
    """
    Reverse ``private_encrypt`` and strip the block type 1 padding.

    Args:
        modulus: N
        public_exponent: E
        signature: Signature bytes

    Returns:
        bytes: The signed message

    Raises:
        ValidationError: If the signature or its padding is invalid
    """
    k = (modulus.bit_length() + 7) // 8
    if len(signature) > k:
        raise ValidationError(
            "Signature is longer than the key modulus",
            "INVALID_SIGNATURE",
            {"signature_length": len(signature), "key_length": k}
        )

    s = int.from_bytes(signature, 'big')
    if s >= modulus:
        raise ValidationError("Signature value is out of range", "INVALID_SIGNATURE")

    em = pow(s, public_exponent, modulus).to_bytes(k, 'big')
    if em[0:2] != b'\x00\x01':
        raise ValidationError("Invalid PKCS#1 block type 1 header", "INVALID_PADDING")

    separator = em.find(b'\x00', 2)
    if separator < 0:
        raise ValidationError("Missing PKCS#1 padding separator", "INVALID_PADDING")

    filler = em[2:separator]
    if len(filler) < MIN_PADDING_LENGTH or filler.strip(b'\xff'):
        raise ValidationError("Invalid PKCS#1 block type 1 padding", "INVALID_PADDING")

    return em[separator + 1:]
