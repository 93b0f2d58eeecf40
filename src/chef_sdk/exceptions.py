"""
Exception classes for the Chef API Python SDK
"""

from typing import Optional, Dict, Any


class ChefSDKError(Exception):
    """Base exception for all Chef SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class MalformedKeyError(ChefSDKError):
    """Exception raised when RSA key material cannot be decoded or is unusable"""

    def __init__(self, message: str, error_code: str = "MALFORMED_KEY", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class MessageTooLargeError(ChefSDKError):
    """Exception raised when a message exceeds the key's k - 11 byte capacity"""

    def __init__(self, message: str, error_code: str = "MESSAGE_TOO_LARGE", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class EncodingOverflowError(ChefSDKError):
    """Exception raised when the padded message block is not smaller than the modulus"""

    def __init__(self, message: str, error_code: str = "ENCODING_OVERFLOW", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ValidationError(ChefSDKError):
    """Exception raised for validation failures"""
    pass


class ConfigurationError(ChefSDKError):
    """Exception raised for knife.rb / connection configuration errors"""
    pass


class ServerCommunicationError(ChefSDKError):
    """Exception raised for server communication errors"""

    def __init__(self, message: str, error_code: str = "SERVER_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
