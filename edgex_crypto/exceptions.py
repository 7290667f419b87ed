"""
Custom exceptions for the edgeX signing library.

Provides typed exceptions so callers can tell malformed input apart from
signing defects. None of these are retryable.
"""

from typing import Optional, Any


class EdgeXCryptoError(Exception):
    """Base exception for all edgeX signing errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EdgeXCryptoError):
    """Input validation failed."""
    pass


class SigningKeyError(ValidationError):
    """Private key argument is unusable."""
    pass


class InvalidKeyType(SigningKeyError, TypeError):
    """Private key is not a string."""

    def __init__(self, message: str, received_type: Optional[str] = None):
        super().__init__(message, {"received_type": received_type})
        self.received_type = received_type


class InvalidKeyValue(SigningKeyError, ValueError):
    """Private key is empty, whitespace-only, not hex, or out of range."""
    pass


class FieldOverflow(ValidationError):
    """A message field does not fit its allotted bit width."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[int] = None, bits: Optional[int] = None):
        super().__init__(message, {"field": field, "value": value, "bits": bits})
        self.field = field
        self.value = value
        self.bits = bits


class InvalidHexField(ValidationError):
    """A hex-encoded message field is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field})
        self.field = field


class PartialFeeError(ValidationError):
    """Some, but not all, of the fee fields were supplied."""

    def __init__(self, message: str, present: Optional[list[str]] = None,
                 missing: Optional[list[str]] = None):
        super().__init__(message, {"present": present, "missing": missing})
        self.present = present or []
        self.missing = missing or []


# Signing exceptions
class SigningError(EdgeXCryptoError):
    """The curve signing step failed."""
    pass


class SignatureLengthError(SigningError):
    """Serialized signature does not have its mandated length."""

    def __init__(self, message: str, expected: Optional[int] = None,
                 actual: Optional[int] = None):
        super().__init__(message, {"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual
