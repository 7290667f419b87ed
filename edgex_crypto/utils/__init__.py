"""Utility modules for the edgeX signing library."""

from .numeric import js_number_to_string
from .structured_logging import (
    CredentialRedactionFilter,
    DebugSink,
    LoggingDebugSink,
    NullDebugSink,
)
from .validators import parse_hex, parse_uint, validate_private_key

__all__ = [
    "js_number_to_string",
    "CredentialRedactionFilter",
    "DebugSink",
    "LoggingDebugSink",
    "NullDebugSink",
    "parse_hex",
    "parse_uint",
    "validate_private_key",
]
