"""
Test suite for the raw RSA private-key transform

Covers PKCS#1 v1.5 block type 1 padding, the CRT fast path for two- and
multi-prime keys, and interoperability with the ``cryptography`` package.
"""

import hashlib
import pytest
from unittest.mock import patch

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from chef_sdk.crypto import (
    PrivateKey,
    generate_private_key,
    private_encrypt,
    public_decrypt,
    pad_type1,
    max_message_length,
)
from chef_sdk.exceptions import (
    EncodingOverflowError,
    MalformedKeyError,
    MessageTooLargeError,
    ValidationError,
)

# Mersenne primes give small deterministic multi-prime keys
M61 = 2 ** 61 - 1
M89 = 2 ** 89 - 1
M107 = 2 ** 107 - 1
M127 = 2 ** 127 - 1

CRYPTO_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
KEY_2048 = PrivateKey.from_cryptography_key(CRYPTO_KEY)

SHA256_DIGEST_INFO = bytes.fromhex("3031300d060960864801650304020105000420")


class TestPadding:
    """Test PKCS#1 block type 1 encoding"""

    def test_layout(self):
        """Test the padded block layout"""
        em = pad_type1(b"abc", 16)
        assert len(em) == 16
        assert em[:2] == b"\x00\x01"
        assert em[2:12] == b"\xff" * 10
        assert em[12:13] == b"\x00"
        assert em[13:] == b"abc"

    def test_minimum_filler_at_capacity(self):
        """Test the eight-byte minimum filler"""
        em = pad_type1(b"x" * 5, 16)
        assert em == b"\x00\x01" + b"\xff" * 8 + b"\x00" + b"x" * 5

    def test_too_large(self):
        """Test a message over capacity"""
        with pytest.raises(MessageTooLargeError) as exc_info:
            pad_type1(b"x" * 6, 16)
        assert exc_info.value.error_code == "MESSAGE_TOO_LARGE"
        assert exc_info.value.details["max_length"] == 5

    def test_max_message_length(self):
        """Test capacity of a 2048-bit key"""
        assert KEY_2048.size_in_bytes == 256
        assert max_message_length(KEY_2048) == 245


class TestPrivateEncrypt:
    """Test the raw private-key transform"""

    def test_signature_length_2048(self):
        """Test signature length for a 2048-bit key"""
        signature = private_encrypt(KEY_2048, b"hello")
        assert len(signature) == 256

    def test_encrypt_this_length(self):
        """Test signing the encrypt_this vector"""
        assert len(private_encrypt(KEY_2048, "encrypt_this")) == 256

    def test_deterministic(self):
        """Test that signatures are deterministic"""
        message = b"Method:GET\nHashed Path:abc"
        assert private_encrypt(KEY_2048, message) == private_encrypt(KEY_2048, message)

    def test_str_is_utf8_encoded(self):
        """Test UTF-8 encoding of str messages"""
        assert private_encrypt(KEY_2048, "café") == private_encrypt(KEY_2048, "café".encode("utf-8"))

    def test_empty_message(self):
        """Test an empty message"""
        signature = private_encrypt(KEY_2048, b"")
        assert public_decrypt(KEY_2048.modulus, KEY_2048.public_exponent, signature) == b""

    def test_capacity_boundary(self):
        """Test the k - 11 byte boundary"""
        private_encrypt(KEY_2048, b"a" * 245)
        with pytest.raises(MessageTooLargeError):
            private_encrypt(KEY_2048, b"a" * 246)

    def test_recoverable_by_cryptography(self):
        """Test recovery with cryptography"""
        message = b"canonical request text"
        signature = private_encrypt(KEY_2048, message)
        recovered = CRYPTO_KEY.public_key().recover_data_from_signature(
            signature, padding.PKCS1v15(), None
        )
        assert recovered == message

    def test_matches_cryptography_pkcs1_signature(self):
        """Test agreement with a cryptography PKCS#1 signature"""
        message = b"interop check"
        digest_info = SHA256_DIGEST_INFO + hashlib.sha256(message).digest()
        expected = CRYPTO_KEY.sign(message, padding.PKCS1v15(), hashes.SHA256())
        assert private_encrypt(KEY_2048, digest_info) == expected

    def test_crt_matches_direct(self):
        """Test that the CRT and direct paths agree"""
        message = b"same either way"
        assert private_encrypt(KEY_2048, message) == private_encrypt(KEY_2048, message, use_crt=False)
        assert private_encrypt(KEY_2048.without_crt(), message) == private_encrypt(KEY_2048, message)

    def test_rejects_non_key(self):
        """Test rejection of a non-key argument"""
        with pytest.raises(MalformedKeyError):
            private_encrypt("not a key", b"data")

    def test_encoding_overflow(self):
        """Test a padded block not below the modulus"""
        k = KEY_2048.size_in_bytes
        with patch("chef_sdk.crypto.rsa_raw.pad_type1", return_value=b"\xff" * k):
            with pytest.raises(EncodingOverflowError) as exc_info:
                private_encrypt(KEY_2048, b"data")
        assert exc_info.value.error_code == "ENCODING_OVERFLOW"

    def test_short_result_is_left_padded(self):
        """Test left-padding to the modulus length"""
        key = PrivateKey.from_primes([M61, M89])
        k = key.size_in_bytes
        # Search for a message whose signature has a leading zero byte
        for i in range(2000):
            message = i.to_bytes(2, "big")
            signature = private_encrypt(key, message)
            assert len(signature) == k
            if signature[0] == 0:
                break
        else:
            pytest.fail("no signature with a leading zero byte found")
        assert public_decrypt(key.modulus, key.public_exponent, signature) == message


class TestMultiPrime:
    """Test CRT recombination for keys with more than two primes"""

    @pytest.mark.parametrize("primes", [
        [M61, M89],
        [M61, M89, M107],
        [M61, M89, M107, M127],
        [M127, M61, M107, M89],
    ])
    def test_crt_matches_direct(self, primes):
        """Test that the CRT and direct paths agree"""
        key = PrivateKey.from_primes(primes)
        assert len(key.crt.crt_values) == len(primes) - 2
        for message in (b"", b"a", b"chef", b"x" * max_message_length(key)):
            crt_signature = private_encrypt(key, message)
            direct_signature = private_encrypt(key, message, use_crt=False)
            assert crt_signature == direct_signature
            assert len(crt_signature) == key.size_in_bytes

    def test_round_trip_four_primes(self):
        """Test a four-prime key"""
        key = PrivateKey.from_primes([M61, M89, M107, M127])
        signature = private_encrypt(key, b"four primes")
        assert public_decrypt(key.modulus, key.public_exponent, signature) == b"four primes"

    def test_crt_value_fields(self):
        """Test the extra-prime CRT values"""
        key = PrivateKey.from_primes([M61, M89, M107, M127])
        first, second = key.crt.crt_values
        assert first.r == M61 * M89
        assert second.r == M61 * M89 * M107
        assert (first.coefficient * first.r) % M107 == 1
        assert first.exponent == key.private_exponent % (M107 - 1)


class TestPublicDecrypt:
    """Test signature recovery and padding checks"""

    def test_tampered_signature(self):
        """Test a corrupted signature"""
        signature = bytearray(private_encrypt(KEY_2048, b"message"))
        signature[-1] ^= 0x01
        with pytest.raises(ValidationError):
            public_decrypt(KEY_2048.modulus, KEY_2048.public_exponent, bytes(signature))

    def test_signature_too_long(self):
        """Test a signature longer than the modulus"""
        with pytest.raises(ValidationError) as exc_info:
            public_decrypt(KEY_2048.modulus, KEY_2048.public_exponent, b"\x01" * 257)
        assert exc_info.value.error_code == "INVALID_SIGNATURE"

    def test_signature_out_of_range(self):
        """Test a signature not below the modulus"""
        with pytest.raises(ValidationError) as exc_info:
            public_decrypt(KEY_2048.modulus, KEY_2048.public_exponent, b"\xff" * 256)
        assert exc_info.value.error_code == "INVALID_SIGNATURE"

    def test_wrong_key(self):
        """Test decrypting with another key"""
        other = generate_private_key(2048)
        signature = private_encrypt(KEY_2048, b"message")
        with pytest.raises(ValidationError):
            public_decrypt(other.modulus, other.public_exponent, signature)
