"""
Shared error handling for the uniauth token service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class UniauthException(Exception):
    """Base exception for uniauth services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class MissingArgumentError(UniauthException):
    """A required input was not supplied."""

    def __init__(self, argument: str, details: Optional[Dict[str, Any]] = None):
        self.argument = argument
        super().__init__("MISSING_ARGUMENT", f"{argument} is required", {"argument": argument, **(details or {})})


class InvalidKeyMaterialError(UniauthException):
    """RSA key text could not be parsed into a usable key."""

    def __init__(self, message: str = "Invalid key material", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_KEY_MATERIAL", message, details)


class ConfigurationError(UniauthException):
    """Settings could not be loaded."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CONFIGURATION", message, details)


class TokenCreationError(UniauthException):
    """Signing a token failed."""

    def __init__(self, message: str = "Failed to create token", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_CREATION_FAILED", message, details)


class VerifierCreationError(UniauthException):
    """The token verifier could not be constructed."""

    def __init__(self, message: str = "Failed to create token verifier", details: Optional[Dict[str, Any]] = None):
        super().__init__("VERIFIER_CREATION_FAILED", message, details)


class TokenVerificationError(UniauthException):
    """Base class for every failure raised while verifying a token."""


class TokenExpiredError(TokenVerificationError):
    """The token's expiry has passed."""

    def __init__(self, message: str = "Token has expired", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_EXPIRED", message, details)


class InvalidTokenError(TokenVerificationError):
    """Signature mismatch, malformed token or any other verification failure."""

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TOKEN", message, details)
