"""StarkEx L2 message hashing and signing."""

from .l2_signer import (
    sign,
    sign_l2_limit_order,
    sign_l2_transfer,
    sign_l2_withdrawal,
    verify_l2_signature,
)
from .message_hash import (
    hash_limit_order,
    hash_transfer,
    hash_withdrawal,
    pack_withdrawal_fields,
    withdrawal_w5,
)

__all__ = [
    "sign",
    "sign_l2_limit_order",
    "sign_l2_transfer",
    "sign_l2_withdrawal",
    "verify_l2_signature",
    "hash_limit_order",
    "hash_transfer",
    "hash_withdrawal",
    "pack_withdrawal_fields",
    "withdrawal_w5",
]
