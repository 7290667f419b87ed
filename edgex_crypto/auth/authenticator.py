"""
Authentication header generation for the edgeX private REST API.

Signing flow:
    timestamp + METHOD + path + canonical params/body
    -> Keccak-256 -> mod STARK curve order -> STARK ECDSA
    -> r || s || public key Y, 64 hex chars each
"""

import time
import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from eth_utils import keccak

from .canonical import encode
from .key_manager import KeyPairCache, resolve_key_pair
from ..config import EdgeXSettings, SIGNATURE_HEADER, TIMESTAMP_HEADER, get_settings
from ..curve import STARK_MODULUS, sign_hash, verify_hash
from ..exceptions import EdgeXCryptoError, SignatureLengthError, ValidationError
from ..utils.structured_logging import DebugSink, LoggingDebugSink, NullDebugSink, emit_debug
from ..utils.validators import validate_private_key

logger = logging.getLogger(__name__)

Clock = Callable[[], Union[int, str]]

COMPONENT_HEX_LENGTH = 64
AUTH_SIGNATURE_LENGTH = 3 * COMPONENT_HEX_LENGTH  # r || s || y

L1_KEY_LABEL = "L1 private key"

# Values a flat query string can carry (bool is an int)
QUERY_SCALAR_TYPES = (str, int, float, Decimal)


def current_millis() -> int:
    """Wall clock in integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def construct_private_api_sign_string(
    timestamp: Union[int, str],
    method: str,
    request_path: str,
    params_or_body: Optional[str] = None
) -> str:
    """
    Build the exact string that is hashed for private API auth.

    Plain concatenation, no separators.

    Args:
        timestamp: Milliseconds since epoch
        method: HTTP method (upper-cased here)
        request_path: Path as sent, without query string
        params_or_body: Canonical query string (GET) or body string (POST/PUT)

    Returns:
        Message to sign
    """
    return str(timestamp) + str(method).upper() + request_path + (params_or_body or "")


def hash_private_api_message(message: str) -> str:
    """
    Keccak-256 of the UTF-8 message.

    Returns:
        0x-prefixed, 64 hex digit digest
    """
    return "0x" + keccak(message.encode("utf-8")).hex()


def reduce_to_field(hashed_message: str) -> str:
    """
    Reduce a hex digest modulo the STARK curve order.

    Returns:
        Minimal lowercase hex (no prefix, no zero padding)
    """
    return format(int(hashed_message, 16) % STARK_MODULUS, "x")


def hash_and_reduce(message: str) -> str:
    """Hash a private API message and reduce it to a signable scalar."""
    return reduce_to_field(hash_private_api_message(message))


def signable_params_string(params_for_signature: Any) -> str:
    """
    Turn request params into the string that goes into the signature.

    Mappings (GET query params) must be flat: each value a str, int, float,
    Decimal or bool, exactly as the HTTP layer sends it. They are rendered as sorted
    ``key=value`` pairs. Strings (POST/PUT bodies) are used as-is since they
    are already canonical.

    Raises:
        TypeError: If params are neither a mapping nor a string
        ValidationError: If a query param value is None or a container
    """
    if params_for_signature is None:
        return ""
    if isinstance(params_for_signature, str):
        return params_for_signature
    if not isinstance(params_for_signature, Mapping):
        raise TypeError(
            f"params_for_signature must be a mapping or string, got {type(params_for_signature).__name__}"
        )

    for key, value in params_for_signature.items():
        if not isinstance(value, QUERY_SCALAR_TYPES):
            raise ValidationError(
                f"Query param {key!r} must be a scalar, got {type(value).__name__}",
                {"param": str(key)}
            )
    return encode(params_for_signature, sort_keys=True)


def _component_hex(value: int) -> str:
    return format(value, f"0{COMPONENT_HEX_LENGTH}x")


class PrivateApiAuthenticator:
    """
    Creates X-edgeX-Api-* headers for private API requests.

    The clock, debug sink and key cache are injected so the signing core has
    no mandatory I/O and is deterministic under test.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        debug_sink: Optional[DebugSink] = None,
        key_cache: Optional[KeyPairCache] = None
    ):
        """
        Initialize authenticator.

        Args:
            clock: Returns epoch milliseconds (default: system clock)
            debug_sink: Trace sink (default: discard)
            key_cache: Optional derived key pair cache
        """
        self._clock = clock or current_millis
        self._debug_sink = debug_sink or NullDebugSink()
        self._key_cache = key_cache

    @classmethod
    def from_settings(
        cls,
        settings: Optional[EdgeXSettings] = None,
        clock: Optional[Clock] = None
    ) -> "PrivateApiAuthenticator":
        """
        Build an authenticator from EDGEX_* settings.

        Args:
            settings: Settings instance (loaded from environment if None)
            clock: Optional clock override
        """
        settings = settings or get_settings()
        debug_sink = LoggingDebugSink() if settings.debug_signing else None
        key_cache = KeyPairCache(settings.key_cache_size) if settings.key_cache_size > 0 else None
        return cls(clock=clock, debug_sink=debug_sink, key_cache=key_cache)

    def create_auth_headers(
        self,
        l1_private_key: str,
        method: str,
        path: str,
        params_for_signature: Optional[Union[Mapping[str, Any], str]] = None
    ) -> dict[str, str]:
        """
        Create private API auth headers.

        Args:
            l1_private_key: Account private key (hex, 0x optional)
            method: HTTP method
            path: Request path without query string
            params_for_signature: GET query params actually sent (mapping),
                or the canonical body string for POST/PUT

        Returns:
            {"X-edgeX-Api-Timestamp": ..., "X-edgeX-Api-Signature": ...}

        Raises:
            InvalidKeyType: If the key is not a string
            InvalidKeyValue: If the key is empty or malformed
            SignatureLengthError: If the serialized signature is not 192 chars
            SigningError: If the curve primitive rejects the hash
        """
        try:
            validate_private_key(l1_private_key, L1_KEY_LABEL)

            # Read once: the same value is signed and reported
            timestamp = str(self._clock())

            params_string = signable_params_string(params_for_signature)
            message = construct_private_api_sign_string(timestamp, method, path, params_string)
            msg_hash = hash_and_reduce(message)
            emit_debug(
                self._debug_sink, "auth_message_built",
                timestamp=timestamp, method=str(method).upper(), path=path,
                message_length=len(message)
            )

            key_pair = resolve_key_pair(l1_private_key, L1_KEY_LABEL, self._key_cache)
            r, s = sign_hash(int(msg_hash, 16), key_pair.private_key)

            signature = _component_hex(r) + _component_hex(s) + _component_hex(key_pair.public_key_y)
            if not signature or len(signature) != AUTH_SIGNATURE_LENGTH:
                raise SignatureLengthError(
                    f"L1 signature has incorrect length (expected {AUTH_SIGNATURE_LENGTH} chars)",
                    expected=AUTH_SIGNATURE_LENGTH,
                    actual=len(signature)
                )

            emit_debug(
                self._debug_sink, "auth_signature_created",
                signature_prefix=signature[:8]
            )
            logger.debug(f"Created auth headers for {str(method).upper()} {path}")

            return {
                TIMESTAMP_HEADER: timestamp,
                SIGNATURE_HEADER: signature,
            }

        except EdgeXCryptoError as e:
            # SECURITY: type only, the message may describe the key
            logger.error(f"Failed to create auth headers: {type(e).__name__}")
            raise


def generate_private_api_auth_headers(
    l1_private_key: str,
    method: str,
    path: str,
    params_for_signature: Optional[Union[Mapping[str, Any], str]] = None,
    *,
    clock: Optional[Clock] = None,
    debug_sink: Optional[DebugSink] = None,
    key_cache: Optional[KeyPairCache] = None
) -> dict[str, str]:
    """
    Create private API auth headers with a one-off authenticator.

    See PrivateApiAuthenticator.create_auth_headers.
    """
    authenticator = PrivateApiAuthenticator(clock=clock, debug_sink=debug_sink, key_cache=key_cache)
    return authenticator.create_auth_headers(l1_private_key, method, path, params_for_signature)


def verify_private_api_signature(
    signature: str,
    message: str,
    public_key_x: int
) -> bool:
    """
    Check an X-edgeX-Api-Signature value against its signed message.

    Malformed signatures (wrong length or non-hex) are reported as invalid.

    Args:
        signature: 192 hex chars (r || s || y)
        message: Output of construct_private_api_sign_string
        public_key_x: Signer's stark key (x coordinate)

    Returns:
        True if the signature is valid for the message and public point
    """
    if len(signature) != AUTH_SIGNATURE_LENGTH:
        return False
    try:
        r, s, y = (
            int(signature[i:i + COMPONENT_HEX_LENGTH], 16)
            for i in range(0, AUTH_SIGNATURE_LENGTH, COMPONENT_HEX_LENGTH)
        )
    except ValueError:
        return False
    msg_hash = int(hash_and_reduce(message), 16)
    return verify_hash(msg_hash, r, s, (public_key_x, y))
