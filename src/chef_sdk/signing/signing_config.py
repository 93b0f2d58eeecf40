"""
Configuration management for request signing

This module provides a fluent builder for ``SigningConfig`` and its validation.
"""

import os
from typing import Optional, Union

from .types import (
    SigningConfig,
    SigningError,
    SigningErrorCodes,
    TimestampGenerator,
    DEFAULT_CHEF_VERSION,
)
from .utils import validate_timestamp
from ..crypto.rsa_key import PrivateKey, load_private_key


class SigningConfigBuilder:
    """
    Builder for creating signing configurations with fluent API
    """

    def __init__(self):
        self._user_id: Optional[str] = None
        self._private_key: Optional[PrivateKey] = None
        self._chef_version: str = DEFAULT_CHEF_VERSION
        self._timestamp_generator: Optional[TimestampGenerator] = None

    def user_id(self, user_id: str) -> 'SigningConfigBuilder':
        """
        Set the signing user (client or user name).

        Args:
            user_id: Chef node_name / client name

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._user_id = user_id
        return self

    def private_key(self, key: Union[PrivateKey, str, bytes, os.PathLike]) -> 'SigningConfigBuilder':
        """
        Set the RSA private key.

        Args:
            key: A ``PrivateKey``, inline PEM, or a path to a PEM file

        Returns:
            SigningConfigBuilder: Self for method chaining

        Raises:
            MalformedKeyError: If the key cannot be loaded
        """
        if not isinstance(key, PrivateKey):
            key = load_private_key(key)
        self._private_key = key
        return self

    def chef_version(self, version: str) -> 'SigningConfigBuilder':
        """
        Set the X-Chef-Version header value.

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._chef_version = version
        return self

    def timestamp_generator(self, generator: TimestampGenerator) -> 'SigningConfigBuilder':
        """
        Set custom timestamp generator.

        Args:
            generator: Function that returns ISO-8601 UTC timestamps

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._timestamp_generator = generator
        return self

    def build(self) -> SigningConfig:
        """
        Build the signing configuration.

        Returns:
            SigningConfig: Complete signing configuration

        Raises:
            SigningError: If configuration is invalid
        """
        if not self._user_id:
            raise SigningError(
                "User ID is required",
                SigningErrorCodes.INVALID_CONFIG
            )

        if self._private_key is None:
            raise SigningError(
                "Private key is required",
                SigningErrorCodes.INVALID_CONFIG
            )

        config = SigningConfig(
            user_id=self._user_id,
            private_key=self._private_key,
            chef_version=self._chef_version,
            timestamp_generator=self._timestamp_generator
        )
        validate_signing_config(config)
        return config


def create_signing_config() -> SigningConfigBuilder:
    """
    Create a new signing configuration builder.

    Returns:
        SigningConfigBuilder: New configuration builder
    """
    return SigningConfigBuilder()


def validate_signing_config(config: SigningConfig) -> None:
    """
    Validate signing configuration.

    Args:
        config: Signing configuration to validate

    Raises:
        SigningError: If configuration is invalid
    """
    if not isinstance(config, SigningConfig):
        raise SigningError(
            "Configuration must be SigningConfig instance",
            SigningErrorCodes.INVALID_CONFIG
        )

    if not config.user_id or not isinstance(config.user_id, str):
        raise SigningError(
            "User ID must be non-empty string",
            SigningErrorCodes.INVALID_USER_ID
        )

    if '\n' in config.user_id:
        raise SigningError(
            "User ID cannot contain newlines",
            SigningErrorCodes.INVALID_USER_ID,
            {"user_id": config.user_id}
        )

    if not isinstance(config.private_key, PrivateKey):
        raise SigningError(
            "Private key must be a PrivateKey instance",
            SigningErrorCodes.INVALID_PRIVATE_KEY
        )

    if config.timestamp_generator:
        try:
            test_timestamp = config.timestamp_generator()
        except Exception as e:
            raise SigningError(
                f"Timestamp generator failed: {e}",
                SigningErrorCodes.INVALID_CONFIG,
                {"original_error": str(e)}
            )
        if not validate_timestamp(test_timestamp):
            raise SigningError(
                "Timestamp generator must return YYYY-MM-DDTHH:MM:SSZ strings",
                SigningErrorCodes.INVALID_CONFIG,
                {"timestamp": test_timestamp}
            )
