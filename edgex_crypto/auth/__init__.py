"""Private API authentication and STARK key handling."""

from .authenticator import (
    PrivateApiAuthenticator,
    construct_private_api_sign_string,
    generate_private_api_auth_headers,
    hash_and_reduce,
    hash_private_api_message,
    reduce_to_field,
    verify_private_api_signature,
)
from .canonical import convert_request_body_to_string, encode
from .key_manager import KeyPairCache, StarkKeyPair, derive_key_pair

__all__ = [
    "PrivateApiAuthenticator",
    "construct_private_api_sign_string",
    "generate_private_api_auth_headers",
    "hash_and_reduce",
    "hash_private_api_message",
    "reduce_to_field",
    "verify_private_api_signature",
    "convert_request_body_to_string",
    "encode",
    "KeyPairCache",
    "StarkKeyPair",
    "derive_key_pair",
]
