"""
edgeX Signing Library

Authentication headers for the edgeX private REST API and StarkEx L2
signatures (limit orders, transfers, withdrawals) on the STARK curve.
"""

from .auth import (
    PrivateApiAuthenticator,
    KeyPairCache,
    StarkKeyPair,
    construct_private_api_sign_string,
    convert_request_body_to_string,
    derive_key_pair,
    generate_private_api_auth_headers,
    hash_and_reduce,
    hash_private_api_message,
    verify_private_api_signature,
)
from .config import EdgeXSettings, get_settings, SIGNATURE_HEADER, TIMESTAMP_HEADER
from .logging_config import setup_logging
from .models import (
    FeeParams,
    LimitOrderParams,
    TransferParams,
    WithdrawalParams,
    L2Signature,
)
from .trading import (
    hash_limit_order,
    hash_transfer,
    hash_withdrawal,
    sign_l2_limit_order,
    sign_l2_transfer,
    sign_l2_withdrawal,
    verify_l2_signature,
)
from .exceptions import (
    EdgeXCryptoError,
    ValidationError,
    SigningKeyError,
    InvalidKeyType,
    InvalidKeyValue,
    FieldOverflow,
    InvalidHexField,
    PartialFeeError,
    SigningError,
    SignatureLengthError,
)

__version__ = "0.1.0"

__all__ = [
    # Private API auth
    "PrivateApiAuthenticator",
    "construct_private_api_sign_string",
    "convert_request_body_to_string",
    "generate_private_api_auth_headers",
    "hash_and_reduce",
    "hash_private_api_message",
    "verify_private_api_signature",

    # Keys
    "KeyPairCache",
    "StarkKeyPair",
    "derive_key_pair",

    # Config
    "EdgeXSettings",
    "get_settings",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "setup_logging",

    # Types
    "FeeParams",
    "LimitOrderParams",
    "TransferParams",
    "WithdrawalParams",
    "L2Signature",

    # L2 signing
    "hash_limit_order",
    "hash_transfer",
    "hash_withdrawal",
    "sign_l2_limit_order",
    "sign_l2_transfer",
    "sign_l2_withdrawal",
    "verify_l2_signature",

    # Exceptions
    "EdgeXCryptoError",
    "ValidationError",
    "SigningKeyError",
    "InvalidKeyType",
    "InvalidKeyValue",
    "FieldOverflow",
    "InvalidHexField",
    "PartialFeeError",
    "SigningError",
    "SignatureLengthError",
]
