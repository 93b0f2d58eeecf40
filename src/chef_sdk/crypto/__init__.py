"""
Cryptographic operations for the Chef API Python SDK
"""

from .rsa_key import (
    PrivateKey,
    CRTParams,
    CRTValue,
    parse_private_key,
    load_private_key,
    load_private_key_file,
    generate_private_key,
)

from .rsa_raw import (
    private_encrypt,
    public_decrypt,
    pad_type1,
    max_message_length,
)

__all__ = [
    # Key model and loading
    'PrivateKey',
    'CRTParams',
    'CRTValue',
    'parse_private_key',
    'load_private_key',
    'load_private_key_file',
    'generate_private_key',

    # Raw RSA transform
    'private_encrypt',
    'public_decrypt',
    'pad_type1',
    'max_message_length',
]
