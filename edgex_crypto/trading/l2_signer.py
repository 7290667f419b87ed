"""
L2 signing for StarkEx limit orders, transfers and withdrawals.

Each sign_l2_* call derives the key pair, hashes the message and signs the
hash. Parameters may be given as a params model or as the camelCase mapping
the exchange documents.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from ..auth.key_manager import KeyPairCache, StarkKeyPair, resolve_key_pair
from ..curve import sign_hash, verify_hash
from ..exceptions import EdgeXCryptoError, ValidationError
from ..models import L2Signature, LimitOrderParams, TransferParams, WithdrawalParams
from .message_hash import hash_limit_order, hash_transfer, hash_withdrawal

logger = logging.getLogger(__name__)

L2_KEY_LABEL = "L2 private key"

MsgHash = Union[int, str]


def _hash_to_int(msg_hash: MsgHash) -> int:
    if isinstance(msg_hash, str):
        return int(msg_hash, 16)
    return msg_hash


def sign(key_pair: StarkKeyPair, msg_hash: MsgHash) -> L2Signature:
    """
    Sign an L2 message hash.

    Args:
        key_pair: Signer key pair
        msg_hash: Message hash as int or hex string

    Returns:
        L2Signature with zero-padded 64-char r and s
    """
    r, s = sign_hash(_hash_to_int(msg_hash), key_pair.private_key)
    return L2Signature.from_components(r, s)


def _coerce(params: Any, model: type, allow_partial_fee: Optional[bool]):
    if isinstance(params, model):
        return params
    if isinstance(params, Mapping):
        if model is WithdrawalParams:
            return WithdrawalParams.from_mapping(params)
        return model.from_mapping(params, allow_partial_fee=allow_partial_fee)
    raise ValidationError(
        f"Expected {model.__name__} or mapping, got {type(params).__name__}"
    )


def sign_l2_limit_order(
    l2_private_key_hex: str,
    order: Union[LimitOrderParams, Mapping[str, Any]],
    *,
    allow_partial_fee: Optional[bool] = None,
    key_cache: Optional[KeyPairCache] = None
) -> L2Signature:
    """
    Sign a StarkEx limit order.

    Args:
        l2_private_key_hex: L2 private key (hex, 0x optional)
        order: LimitOrderParams or camelCase mapping
        allow_partial_fee: Drop incomplete fee fields instead of raising
        key_cache: Optional derived key pair cache

    Returns:
        L2Signature

    Raises:
        InvalidKeyType: If the key is not a string
        PartialFeeError: If only some fee fields are given
        FieldOverflow: If a field exceeds its width
    """
    try:
        key_pair = resolve_key_pair(l2_private_key_hex, L2_KEY_LABEL, key_cache)
        params = _coerce(order, LimitOrderParams, allow_partial_fee)
        signature = sign(key_pair, hash_limit_order(params))
        logger.debug(f"Signed limit order (nonce={params.nonce})")
        return signature
    except EdgeXCryptoError as e:
        logger.error(f"Failed to sign limit order: {type(e).__name__}")
        raise


def sign_l2_transfer(
    l2_private_key_hex: str,
    transfer: Union[TransferParams, Mapping[str, Any]],
    *,
    allow_partial_fee: Optional[bool] = None,
    key_cache: Optional[KeyPairCache] = None
) -> L2Signature:
    """
    Sign a StarkEx transfer (optionally conditional, optionally with fee).

    See sign_l2_limit_order for arguments and errors.
    """
    try:
        key_pair = resolve_key_pair(l2_private_key_hex, L2_KEY_LABEL, key_cache)
        params = _coerce(transfer, TransferParams, allow_partial_fee)
        signature = sign(key_pair, hash_transfer(params))
        logger.debug(f"Signed transfer (nonce={params.nonce})")
        return signature
    except EdgeXCryptoError as e:
        logger.error(f"Failed to sign transfer: {type(e).__name__}")
        raise


def sign_l2_withdrawal(
    l2_private_key_hex: str,
    withdrawal: Union[WithdrawalParams, Mapping[str, Any]],
    *,
    key_cache: Optional[KeyPairCache] = None
) -> L2Signature:
    """
    Sign a StarkEx withdrawal to an Ethereum address.

    Args:
        l2_private_key_hex: L2 private key (hex, 0x optional)
        withdrawal: WithdrawalParams or camelCase mapping
        key_cache: Optional derived key pair cache

    Returns:
        L2Signature

    Raises:
        InvalidKeyType: If the key is not a string
        FieldOverflow: If a packed field exceeds its width
    """
    try:
        key_pair = resolve_key_pair(l2_private_key_hex, L2_KEY_LABEL, key_cache)
        params = _coerce(withdrawal, WithdrawalParams, None)
        signature = sign(key_pair, hash_withdrawal(params))
        logger.debug(f"Signed withdrawal (nonce={params.nonce})")
        return signature
    except EdgeXCryptoError as e:
        logger.error(f"Failed to sign withdrawal: {type(e).__name__}")
        raise


def verify_l2_signature(
    msg_hash: MsgHash,
    signature: Union[L2Signature, Mapping[str, str]],
    public_key: Union[StarkKeyPair, int, str]
) -> bool:
    """
    Verify an L2 signature.

    Args:
        msg_hash: Message hash as int or hex string
        signature: L2Signature or {"r": ..., "s": ...}
        public_key: Key pair, stark key int, or stark key hex

    Returns:
        True if valid. Non-hex signature components or stark key count as
        invalid.
    """
    if isinstance(signature, L2Signature):
        r_hex, s_hex = signature.r, signature.s
    else:
        r_hex, s_hex = signature["r"], signature["s"]

    try:
        r, s = int(r_hex, 16), int(s_hex, 16)
        if isinstance(public_key, StarkKeyPair):
            key: Union[int, tuple[int, int]] = (public_key.public_key_x, public_key.public_key_y)
        elif isinstance(public_key, str):
            key = int(public_key, 16)
        else:
            key = public_key
    except ValueError:
        return False

    return verify_hash(_hash_to_int(msg_hash), r, s, key)
