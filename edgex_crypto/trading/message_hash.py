"""
StarkEx L2 message hashes: limit orders, transfers and withdrawals.

Field order, bit widths and instruction types follow the StarkEx message
formats exactly. A wrong width or order still yields a valid-looking hash
that the exchange will reject, so every field is range-checked before it is
packed.

All hashes are returned as minimal lowercase hex without prefix.
"""

import logging
from typing import Optional

from ..curve import FIELD_PRIME, pedersen
from ..models import FeeParams, LimitOrderParams, TransferParams, WithdrawalParams
from ..utils.validators import check_below, check_bit_width

logger = logging.getLogger(__name__)


# Instruction types
LIMIT_ORDER = 0
TRANSFER = 1
CONDITIONAL_TRANSFER = 2
LIMIT_ORDER_WITH_FEE = 3
TRANSFER_WITH_FEE = 4
CONDITIONAL_TRANSFER_WITH_FEE = 5

# Withdrawal opcode used as the seed of the packed word
WITHDRAWAL_TO_ADDRESS_CONSTANT = 2
WITHDRAWAL_PADDING_BITS = 49

# Legacy (no-fee) message widths
LEGACY_VAULT_BITS = 31
LEGACY_AMOUNT_BITS = 63
LEGACY_NONCE_BITS = 31
LEGACY_EXPIRATION_BITS = 22

# Fee message and withdrawal widths
VAULT_BITS = 64
AMOUNT_BITS = 64
NONCE_BITS = 32
EXPIRATION_BITS = 32


def _to_hex(value: int) -> str:
    return format(value, "x")


def _check_field_elements(**elements: int) -> None:
    for name, value in elements.items():
        check_below(value, FIELD_PRIME, name)


def _hash_legacy_message(
    instruction_type: int,
    vault0: int,
    vault1: int,
    amount0: int,
    amount1: int,
    nonce: int,
    expiration_timestamp: int,
    token0: int,
    token1_or_pub_key: int,
    condition: Optional[int] = None
) -> int:
    packed = instruction_type
    packed = (packed << LEGACY_VAULT_BITS) + vault0
    packed = (packed << LEGACY_VAULT_BITS) + vault1
    packed = (packed << LEGACY_AMOUNT_BITS) + amount0
    packed = (packed << LEGACY_AMOUNT_BITS) + amount1
    packed = (packed << LEGACY_NONCE_BITS) + nonce
    packed = (packed << LEGACY_EXPIRATION_BITS) + expiration_timestamp

    tokens_hash = pedersen(token0, token1_or_pub_key)
    if condition is not None:
        tokens_hash = pedersen(tokens_hash, condition)
    return pedersen(tokens_hash, packed)


def _limit_order_hash(order: LimitOrderParams) -> int:
    check_bit_width(order.vault_id_sell, LEGACY_VAULT_BITS, "vault_id_sell")
    check_bit_width(order.vault_id_buy, LEGACY_VAULT_BITS, "vault_id_buy")
    check_bit_width(order.amount_sell, LEGACY_AMOUNT_BITS, "amount_sell")
    check_bit_width(order.amount_buy, LEGACY_AMOUNT_BITS, "amount_buy")
    check_bit_width(order.nonce, LEGACY_NONCE_BITS, "nonce")
    check_bit_width(order.expiration_timestamp, LEGACY_EXPIRATION_BITS, "expiration_timestamp")
    _check_field_elements(token_sell=order.token_sell, token_buy=order.token_buy)

    return _hash_legacy_message(
        LIMIT_ORDER,
        order.vault_id_sell,
        order.vault_id_buy,
        order.amount_sell,
        order.amount_buy,
        order.nonce,
        order.expiration_timestamp,
        order.token_sell,
        order.token_buy,
    )


def _limit_order_hash_with_fee(order: LimitOrderParams, fee: FeeParams) -> int:
    check_bit_width(order.vault_id_sell, VAULT_BITS, "vault_id_sell")
    check_bit_width(order.vault_id_buy, VAULT_BITS, "vault_id_buy")
    check_bit_width(order.amount_sell, AMOUNT_BITS, "amount_sell")
    check_bit_width(order.amount_buy, AMOUNT_BITS, "amount_buy")
    check_bit_width(order.nonce, NONCE_BITS, "nonce")
    check_bit_width(order.expiration_timestamp, EXPIRATION_BITS, "expiration_timestamp")
    check_bit_width(fee.fee_source_vault_id, VAULT_BITS, "fee_source_vault_id")
    check_bit_width(fee.fee_limit, AMOUNT_BITS, "fee_limit")
    _check_field_elements(
        token_sell=order.token_sell, token_buy=order.token_buy, fee_token_id=fee.fee_token_id
    )

    packed1 = order.amount_sell
    packed1 = (packed1 << AMOUNT_BITS) + order.amount_buy
    packed1 = (packed1 << AMOUNT_BITS) + fee.fee_limit
    packed1 = (packed1 << NONCE_BITS) + order.nonce

    packed2 = LIMIT_ORDER_WITH_FEE
    packed2 = (packed2 << VAULT_BITS) + fee.fee_source_vault_id
    packed2 = (packed2 << VAULT_BITS) + order.vault_id_sell
    packed2 = (packed2 << VAULT_BITS) + order.vault_id_buy
    packed2 = (packed2 << EXPIRATION_BITS) + order.expiration_timestamp
    packed2 = packed2 << 17  # Padding

    tmp_hash = pedersen(pedersen(order.token_sell, order.token_buy), fee.fee_token_id)
    return pedersen(pedersen(tmp_hash, packed1), packed2)


def hash_limit_order(order: LimitOrderParams) -> str:
    """
    Hash a limit order.

    Uses the fee message format when the order carries a FeeParams bundle.

    Args:
        order: Limit order parameters

    Returns:
        Message hash as minimal lowercase hex

    Raises:
        FieldOverflow: If a field exceeds its width for the selected format
    """
    if order.fee is None:
        msg_hash = _limit_order_hash(order)
    else:
        msg_hash = _limit_order_hash_with_fee(order, order.fee)

    logger.debug(f"Hashed limit order (fee={order.fee is not None}, nonce={order.nonce})")
    return _to_hex(msg_hash)


def _transfer_hash(transfer: TransferParams) -> int:
    check_bit_width(transfer.sender_vault_id, LEGACY_VAULT_BITS, "sender_vault_id")
    check_bit_width(transfer.target_vault_id, LEGACY_VAULT_BITS, "target_vault_id")
    check_bit_width(transfer.amount, LEGACY_AMOUNT_BITS, "amount")
    check_bit_width(transfer.nonce, LEGACY_NONCE_BITS, "nonce")
    check_bit_width(transfer.expiration_timestamp, LEGACY_EXPIRATION_BITS, "expiration_timestamp")
    _check_field_elements(token=transfer.token, target_public_key=transfer.target_public_key)

    instruction_type = TRANSFER
    if transfer.condition is not None:
        instruction_type = CONDITIONAL_TRANSFER
        _check_field_elements(condition=transfer.condition)

    return _hash_legacy_message(
        instruction_type,
        transfer.sender_vault_id,
        transfer.target_vault_id,
        transfer.amount,
        0,
        transfer.nonce,
        transfer.expiration_timestamp,
        transfer.token,
        transfer.target_public_key,
        transfer.condition,
    )


def _transfer_hash_with_fee(transfer: TransferParams, fee: FeeParams) -> int:
    check_bit_width(transfer.sender_vault_id, VAULT_BITS, "sender_vault_id")
    check_bit_width(transfer.target_vault_id, VAULT_BITS, "target_vault_id")
    check_bit_width(transfer.amount, AMOUNT_BITS, "amount")
    check_bit_width(transfer.nonce, NONCE_BITS, "nonce")
    check_bit_width(transfer.expiration_timestamp, EXPIRATION_BITS, "expiration_timestamp")
    check_bit_width(fee.fee_source_vault_id, VAULT_BITS, "fee_source_vault_id")
    check_bit_width(fee.fee_limit, AMOUNT_BITS, "fee_limit")
    _check_field_elements(
        token=transfer.token,
        target_public_key=transfer.target_public_key,
        fee_token_id=fee.fee_token_id,
    )

    instruction_type = TRANSFER_WITH_FEE
    if transfer.condition is not None:
        instruction_type = CONDITIONAL_TRANSFER_WITH_FEE
        _check_field_elements(condition=transfer.condition)

    packed1 = transfer.sender_vault_id
    packed1 = (packed1 << VAULT_BITS) + transfer.target_vault_id
    packed1 = (packed1 << VAULT_BITS) + fee.fee_source_vault_id
    packed1 = (packed1 << NONCE_BITS) + transfer.nonce

    packed2 = instruction_type
    packed2 = (packed2 << AMOUNT_BITS) + transfer.amount
    packed2 = (packed2 << AMOUNT_BITS) + fee.fee_limit
    packed2 = (packed2 << EXPIRATION_BITS) + transfer.expiration_timestamp
    packed2 = packed2 << 81  # Padding

    tmp_hash = pedersen(pedersen(transfer.token, fee.fee_token_id), transfer.target_public_key)
    if transfer.condition is not None:
        tmp_hash = pedersen(tmp_hash, transfer.condition)
    return pedersen(pedersen(tmp_hash, packed1), packed2)


def hash_transfer(transfer: TransferParams) -> str:
    """
    Hash a transfer.

    Uses the fee message format when the transfer carries a FeeParams
    bundle; a condition switches to the conditional instruction type.

    Args:
        transfer: Transfer parameters

    Returns:
        Message hash as minimal lowercase hex

    Raises:
        FieldOverflow: If a field exceeds its width for the selected format
    """
    if transfer.fee is None:
        msg_hash = _transfer_hash(transfer)
    else:
        msg_hash = _transfer_hash_with_fee(transfer, transfer.fee)

    logger.debug(
        f"Hashed transfer (fee={transfer.fee is not None}, "
        f"conditional={transfer.condition is not None}, nonce={transfer.nonce})"
    )
    return _to_hex(msg_hash)


def pack_withdrawal_fields(withdrawal: WithdrawalParams) -> int:
    """
    Pack the withdrawal scalar fields, most significant first.

    Layout: constant(2) | position_id:64 | nonce:32 | amount:64 |
    expiration_timestamp:32. The trailing 49 padding bits are added by
    withdrawal_w5.

    Raises:
        FieldOverflow: If a field does not fit its width
    """
    check_bit_width(withdrawal.position_id, VAULT_BITS, "position_id")
    check_bit_width(withdrawal.nonce, NONCE_BITS, "nonce")
    check_bit_width(withdrawal.amount, AMOUNT_BITS, "amount")
    check_bit_width(withdrawal.expiration_timestamp, EXPIRATION_BITS, "expiration_timestamp")

    packed = WITHDRAWAL_TO_ADDRESS_CONSTANT
    packed = (packed << VAULT_BITS) + withdrawal.position_id
    packed = (packed << NONCE_BITS) + withdrawal.nonce
    packed = (packed << AMOUNT_BITS) + withdrawal.amount
    packed = (packed << EXPIRATION_BITS) + withdrawal.expiration_timestamp
    return packed


def withdrawal_w5(withdrawal: WithdrawalParams) -> int:
    """Packed withdrawal word including its zero padding."""
    return pack_withdrawal_fields(withdrawal) << WITHDRAWAL_PADDING_BITS


def hash_withdrawal(withdrawal: WithdrawalParams) -> str:
    """
    Hash a withdrawal to an Ethereum address.

    msg_hash = pedersen(pedersen(asset_id_collateral, eth_address), w5)

    The Pedersen output is already a field element and is not reduced again.

    Returns:
        Message hash as minimal lowercase hex
    """
    _check_field_elements(
        asset_id_collateral=withdrawal.asset_id_collateral,
        eth_address=withdrawal.eth_address,
    )
    w5 = withdrawal_w5(withdrawal)

    hash_part1 = pedersen(withdrawal.asset_id_collateral, withdrawal.eth_address)
    msg_hash = pedersen(hash_part1, w5)

    logger.debug(f"Hashed withdrawal (nonce={withdrawal.nonce})")
    return _to_hex(msg_hash)
