"""
Input validation utilities.

Validates keys and message fields before they reach the curve primitives.
"""

import re
from decimal import Decimal
from typing import Any, Optional

from eth_utils import add_0x_prefix, is_0x_prefixed, remove_0x_prefix

from ..exceptions import (
    ValidationError,
    InvalidKeyType,
    InvalidKeyValue,
    FieldOverflow,
    InvalidHexField,
)

PRIVATE_KEY_HEX_LENGTH = 64

# Largest integer a double represents exactly (JS Number.MAX_SAFE_INTEGER + 1)
MAX_SAFE_FLOAT_INTEGER = 2 ** 53

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_DECIMAL_RE = re.compile(r"^[0-9]+$")


def validate_private_key(private_key: Any, label: str = "Private key") -> str:
    """
    Validate and normalize a hex private key.

    Strips surrounding whitespace and an optional 0x prefix, then left-pads
    to 64 hex characters.

    Args:
        private_key: Private key hex string
        label: Name used in error messages (e.g. "L1 private key")

    Returns:
        Normalized 64-char lowercase hex key without prefix

    Raises:
        InvalidKeyType: If the key is not a string
        InvalidKeyValue: If the key is empty or not hex
    """
    if not isinstance(private_key, str):
        # SECURITY: report the type only, never the value
        received = type(private_key).__name__
        raise InvalidKeyType(f"{label} must be a string, got {received}", received_type=received)

    key = private_key.strip()
    if not key:
        raise InvalidKeyValue(f"{label} cannot be an empty or whitespace-only string")

    key = remove_0x_prefix(key)
    if not _HEX_RE.match(key) or len(key) > PRIVATE_KEY_HEX_LENGTH:
        raise InvalidKeyValue(f"{label} must be at most {PRIVATE_KEY_HEX_LENGTH} hex characters")

    return key.lower().rjust(PRIVATE_KEY_HEX_LENGTH, "0")


def parse_uint(value: Any, field: str) -> int:
    """
    Parse an unsigned integer given as a number or decimal string.

    ``"5"``, ``5`` and ``5.0`` produce the same result.

    Args:
        value: int, integral float or Decimal, or decimal digit string
        field: Field name for error messages

    Returns:
        Non-negative int

    Raises:
        ValidationError: If value is not an unsigned integer
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer, got bool")

    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, got {value}")
        if abs(value) > MAX_SAFE_FLOAT_INTEGER:
            raise ValidationError(f"{field} is too large to be exact as a float; pass int or string")
        result = int(value)
    elif isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValidationError(f"{field} must be an integer, got {value}")
        result = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _DECIMAL_RE.match(text):
            raise ValidationError(f"{field} must be a decimal integer string, got {value!r}")
        result = int(text)
    else:
        raise ValidationError(f"{field} must be int or decimal string, got {type(value).__name__}")

    if result < 0:
        raise ValidationError(f"{field} must be non-negative, got {result}")

    return result


def parse_hex(value: Any, field: str, require_prefix: bool = True) -> int:
    """
    Parse a hex-encoded field element.

    Args:
        value: Hex string (or already-parsed non-negative int)
        field: Field name for error messages
        require_prefix: Reject strings without a 0x prefix

    Returns:
        Parsed int

    Raises:
        InvalidHexField: If the string is not hex or lacks a required prefix
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise InvalidHexField(f"{field} must be non-negative", field=field)
        return value

    if not isinstance(value, str):
        raise InvalidHexField(f"{field} must be a hex string, got {type(value).__name__}", field=field)

    if require_prefix and not is_0x_prefixed(value):
        raise InvalidHexField(f"{field}: hex strings expected to be prefixed with 0x", field=field)

    digits = remove_0x_prefix(value)
    if not _HEX_RE.match(digits):
        raise InvalidHexField(f"{field} is not valid hex: {value!r}", field=field)

    return int(digits, 16)


def ensure_hex_prefix(value: str) -> str:
    """Prepend 0x when missing. Digits are left untouched."""
    return add_0x_prefix(value)


def check_bit_width(value: int, bits: int, field: str) -> int:
    """
    Ensure value fits in an unsigned field of the given width.

    Raises:
        FieldOverflow: If value >= 2**bits
    """
    if value >= 1 << bits:
        raise FieldOverflow(
            f"{field} exceeds {bits}-bit width: {value}",
            field=field, value=value, bits=bits
        )
    return value


def check_below(value: int, bound: int, field: str, bits: Optional[int] = None) -> int:
    """
    Ensure value is strictly below an arbitrary bound (e.g. the field prime).

    Raises:
        FieldOverflow: If value >= bound
    """
    if value >= bound:
        raise FieldOverflow(
            f"{field} is out of range (must be < {hex(bound)})",
            field=field, value=value, bits=bits
        )
    return value
