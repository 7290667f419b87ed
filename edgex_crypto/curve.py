"""
STARK curve primitives.

Thin adapter over StarkWare's reference implementation (cairo-lang).
Everything curve-specific that the rest of the package touches goes through
this module, so the signing code never imports starkware directly.
"""

from typing import Union

from starkware.crypto.signature.fast_pedersen_hash import pedersen_hash
from starkware.crypto.signature.signature import (
    EC_ORDER,
    FIELD_PRIME,
    N_ELEMENT_BITS_ECDSA,
    private_key_to_ec_point_on_stark_curve,
    sign as stark_sign,
    verify as stark_verify,
)

from .exceptions import SigningError

# Curve order; private-API message hashes are reduced modulo this value
STARK_MODULUS = 0x0800000000000010ffffffffffffffffb781126dcae7b2321e66a241adc64d2f

# Upper bound (exclusive) for message hashes and signature components
MAX_ECDSA_VALUE = 1 << N_ELEMENT_BITS_ECDSA

__all__ = [
    "EC_ORDER",
    "FIELD_PRIME",
    "MAX_ECDSA_VALUE",
    "STARK_MODULUS",
    "public_point",
    "sign_hash",
    "verify_hash",
    "pedersen",
]

FieldInput = Union[int, str]


def _as_int(value: FieldInput) -> int:
    if isinstance(value, str):
        return int(value, 16)
    return value


def public_point(private_key: int) -> tuple[int, int]:
    """
    Compute the public key point for a private scalar.

    Args:
        private_key: Scalar in [1, EC_ORDER)

    Returns:
        (x, y) affine coordinates
    """
    x, y = private_key_to_ec_point_on_stark_curve(private_key)
    return x, y


def sign_hash(msg_hash: int, private_key: int) -> tuple[int, int]:
    """
    Sign a message hash (deterministic RFC 6979 nonce).

    Raises:
        SigningError: If msg_hash is outside [0, MAX_ECDSA_VALUE) or the
            primitive rejects its input
    """
    if not 0 <= msg_hash < MAX_ECDSA_VALUE:
        raise SigningError(
            f"Message hash must be in [0, 2**{N_ELEMENT_BITS_ECDSA})",
            {"msg_hash_bits": msg_hash.bit_length()}
        )
    try:
        r, s = stark_sign(msg_hash, private_key)
    except AssertionError as e:
        # SECURITY: do not echo the primitive's arguments
        raise SigningError("STARK signing rejected its input") from e
    return r, s


def verify_hash(msg_hash: int, r: int, s: int, public_key: Union[int, tuple[int, int]]) -> bool:
    """
    Verify a signature against a public key (x coordinate or full point).

    Out-of-range components or an off-curve point count as invalid.
    """
    try:
        return stark_verify(msg_hash, r, s, public_key)
    except AssertionError:
        return False


def pedersen(x: FieldInput, y: FieldInput) -> int:
    """
    Two-input Pedersen hash.

    Args:
        x: Field element as int or hex string (0x optional)
        y: Field element as int or hex string (0x optional)

    Returns:
        Hash as a field element
    """
    return pedersen_hash(_as_int(x), _as_int(y))
