"""
Tests for StarkEx L2 message hashing.

Expected hashes are rebuilt here from the raw Pedersen primitive so that a
wrong field order or width in the packing shows up as a mismatch.
"""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError
from starkware.crypto.signature.fast_pedersen_hash import pedersen_hash

from edgex_crypto.exceptions import FieldOverflow, InvalidHexField, PartialFeeError
from edgex_crypto.models import FeeParams, LimitOrderParams, TransferParams, WithdrawalParams
from edgex_crypto.trading.message_hash import (
    hash_limit_order,
    hash_transfer,
    hash_withdrawal,
    pack_withdrawal_fields,
    withdrawal_w5,
)


TOKEN_SELL = "0x5fa3383597691ea9d827a79e1a4f0f7989c35ced18ca9619de8ab97e661020"
TOKEN_BUY = "0x774961c824a3b0fb3d2965f01471c9c7734bf8dbde659e0c08dca2ef18d56a"
FEE_TOKEN = "0x70bf591713d7cb7150523cf64add8d49fa6b61036bba9f596bd2af8e3bb86f9"
TARGET_KEY = "0x5fa3383597691ea9d827a79e1a4f0f7989c35ced18ca9619de8ab97e661020"
CONDITION = "0x318ff6d26cf3175c77668cd6434ab34d31e59f806a6a7c06d08215bccb7eaf8"


@pytest.fixture
def order_data():
    return {
        "vaultIdSell": 21,
        "vaultIdBuy": 27,
        "amountSell": "2154686749748910716",
        "amountBuy": "1470242115489520459",
        "tokenSell": TOKEN_SELL,
        "tokenBuy": TOKEN_BUY,
        "nonce": 0,
        "expirationTimestamp": 438953,
    }


@pytest.fixture
def fee_data():
    return {"feeTokenId": FEE_TOKEN, "feeSourceVaultId": 593128169, "feeLimit": 7}


@pytest.fixture
def transfer_data():
    return {
        "amount": "2154549703648910716",
        "nonce": 1,
        "senderVaultId": 34,
        "token": TOKEN_BUY,
        "targetVaultId": 21,
        "targetPublicKey": TARGET_KEY,
        "expirationTimestamp": 438953,
    }


@pytest.fixture
def withdrawal_data():
    return {
        "assetIdCollateral": "0x2c04d8b650f44092278a7cb1e1028c82025dff622db96c934b611b84cc8de5a",
        "positionId": 1,
        "ethAddress": "0x0000000000000000000000000000000000000001",
        "nonce": 2,
        "expirationTimestamp": 4,
        "amount": 3,
    }


class TestLimitOrderHash:
    """Test limit order message hashing."""

    def test_no_fee_layout(self, order_data):
        order = LimitOrderParams.from_mapping(order_data)

        packed = 0
        packed = (packed << 31) + 21
        packed = (packed << 31) + 27
        packed = (packed << 63) + 2154686749748910716
        packed = (packed << 63) + 1470242115489520459
        packed = (packed << 31) + 0
        packed = (packed << 22) + 438953
        expected = pedersen_hash(
            pedersen_hash(int(TOKEN_SELL, 16), int(TOKEN_BUY, 16)), packed
        )

        assert not order.has_fee
        assert hash_limit_order(order) == format(expected, "x")

    def test_fee_layout(self, order_data, fee_data):
        order = LimitOrderParams.from_mapping({**order_data, **fee_data})

        packed1 = 2154686749748910716
        packed1 = (packed1 << 64) + 1470242115489520459
        packed1 = (packed1 << 64) + 7
        packed1 = (packed1 << 32) + 0
        packed2 = 3
        packed2 = (packed2 << 64) + 593128169
        packed2 = (packed2 << 64) + 21
        packed2 = (packed2 << 64) + 27
        packed2 = (packed2 << 32) + 438953
        packed2 = packed2 << 17
        tmp = pedersen_hash(
            pedersen_hash(int(TOKEN_SELL, 16), int(TOKEN_BUY, 16)), int(FEE_TOKEN, 16)
        )
        expected = pedersen_hash(pedersen_hash(tmp, packed1), packed2)

        assert order.has_fee
        assert hash_limit_order(order) == format(expected, "x")

    def test_fee_changes_hash(self, order_data, fee_data):
        plain = hash_limit_order(LimitOrderParams.from_mapping(order_data))
        with_fee = hash_limit_order(LimitOrderParams.from_mapping({**order_data, **fee_data}))
        assert plain != with_fee

    def test_string_and_int_fields_are_equivalent(self, order_data):
        as_strings = {**order_data, "vaultIdSell": "21", "nonce": "0"}
        assert hash_limit_order(LimitOrderParams.from_mapping(as_strings)) == hash_limit_order(
            LimitOrderParams.from_mapping(order_data)
        )

    def test_nested_fee_bundle(self, order_data, fee_data):
        flat = LimitOrderParams.from_mapping({**order_data, **fee_data})
        nested = LimitOrderParams(**order_data, fee=FeeParams(**fee_data))
        assert hash_limit_order(flat) == hash_limit_order(nested)

    def test_fee_source_vault_zero_is_present(self, order_data, fee_data):
        """A zero vault id still selects the fee format."""
        order = LimitOrderParams.from_mapping({**order_data, **fee_data, "feeSourceVaultId": 0})
        assert order.has_fee
        assert order.fee.fee_source_vault_id == 0

    def test_legacy_nonce_overflow(self, order_data):
        order = LimitOrderParams.from_mapping({**order_data, "nonce": 2 ** 31})
        with pytest.raises(FieldOverflow) as exc_info:
            hash_limit_order(order)
        assert exc_info.value.field == "nonce"
        assert exc_info.value.bits == 31

    def test_fee_format_allows_wider_nonce(self, order_data, fee_data):
        order = LimitOrderParams.from_mapping({**order_data, **fee_data, "nonce": 2 ** 31})
        hash_limit_order(order)

    def test_fee_nonce_overflow(self, order_data, fee_data):
        order = LimitOrderParams.from_mapping({**order_data, **fee_data, "nonce": 2 ** 32})
        with pytest.raises(FieldOverflow):
            hash_limit_order(order)

    def test_token_must_be_prefixed(self, order_data):
        with pytest.raises(InvalidHexField) as exc_info:
            LimitOrderParams.from_mapping({**order_data, "tokenSell": TOKEN_SELL[2:]})
        assert "prefixed with 0x" in str(exc_info.value)

    def test_missing_field(self, order_data):
        del order_data["amountBuy"]
        with pytest.raises(PydanticValidationError):
            LimitOrderParams.from_mapping(order_data)

    def test_params_are_immutable(self, order_data):
        order = LimitOrderParams.from_mapping(order_data)
        with pytest.raises(PydanticValidationError):
            order.nonce = 5


class TestPartialFee:
    """Test fee selection when only some fee fields are given."""

    def test_rejected_by_default(self, order_data, monkeypatch):
        monkeypatch.delenv("EDGEX_ALLOW_PARTIAL_FEE", raising=False)
        with pytest.raises(PartialFeeError) as exc_info:
            LimitOrderParams.from_mapping({**order_data, "feeTokenId": FEE_TOKEN})
        assert exc_info.value.present == ["fee_token_id"]
        assert exc_info.value.missing == ["fee_source_vault_id", "fee_limit"]

    def test_legacy_mode_signs_no_fee_message(self, order_data, caplog):
        with caplog.at_level(logging.WARNING, logger="edgex_crypto"):
            order = LimitOrderParams.from_mapping(
                {**order_data, "feeTokenId": FEE_TOKEN, "feeLimit": 7},
                allow_partial_fee=True,
            )
        assert not order.has_fee
        assert hash_limit_order(order) == hash_limit_order(LimitOrderParams.from_mapping(order_data))
        assert "incomplete fee fields" in caplog.text

    def test_legacy_mode_from_environment(self, transfer_data, monkeypatch):
        monkeypatch.setenv("EDGEX_ALLOW_PARTIAL_FEE", "true")
        transfer = TransferParams.from_mapping({**transfer_data, "feeLimit": 7})
        assert not transfer.has_fee

    def test_empty_string_counts_as_absent(self, order_data, fee_data):
        order = LimitOrderParams.from_mapping(
            {**order_data, "feeTokenId": "", "feeSourceVaultId": None, "feeLimit": ""}
        )
        assert not order.has_fee


class TestTransferHash:
    """Test transfer message hashing."""

    def _legacy_packed(self, instruction_type):
        packed = instruction_type
        packed = (packed << 31) + 34
        packed = (packed << 31) + 21
        packed = (packed << 63) + 2154549703648910716
        packed = (packed << 63) + 0
        packed = (packed << 31) + 1
        packed = (packed << 22) + 438953
        return packed

    def test_no_fee_layout(self, transfer_data):
        transfer = TransferParams.from_mapping(transfer_data)
        expected = pedersen_hash(
            pedersen_hash(int(TOKEN_BUY, 16), int(TARGET_KEY, 16)), self._legacy_packed(1)
        )
        assert not transfer.is_conditional
        assert hash_transfer(transfer) == format(expected, "x")

    def test_conditional_layout(self, transfer_data):
        transfer = TransferParams.from_mapping({**transfer_data, "condition": CONDITION})
        tokens = pedersen_hash(
            pedersen_hash(int(TOKEN_BUY, 16), int(TARGET_KEY, 16)), int(CONDITION, 16)
        )
        expected = pedersen_hash(tokens, self._legacy_packed(2))
        assert transfer.is_conditional
        assert hash_transfer(transfer) == format(expected, "x")

    def test_fee_layout(self, transfer_data, fee_data):
        transfer = TransferParams.from_mapping({**transfer_data, **fee_data})

        packed1 = 34
        packed1 = (packed1 << 64) + 21
        packed1 = (packed1 << 64) + 593128169
        packed1 = (packed1 << 32) + 1
        packed2 = 4
        packed2 = (packed2 << 64) + 2154549703648910716
        packed2 = (packed2 << 64) + 7
        packed2 = (packed2 << 32) + 438953
        packed2 = packed2 << 81
        tmp = pedersen_hash(
            pedersen_hash(int(TOKEN_BUY, 16), int(FEE_TOKEN, 16)), int(TARGET_KEY, 16)
        )
        expected = pedersen_hash(pedersen_hash(tmp, packed1), packed2)

        assert hash_transfer(transfer) == format(expected, "x")

    def test_conditional_fee_layout(self, transfer_data, fee_data):
        """Type 5, with the condition hashed after the target public key."""
        transfer = TransferParams.from_mapping({**transfer_data, **fee_data, "condition": CONDITION})

        packed1 = 34
        packed1 = (packed1 << 64) + 21
        packed1 = (packed1 << 64) + 593128169
        packed1 = (packed1 << 32) + 1
        packed2 = 5
        packed2 = (packed2 << 64) + 2154549703648910716
        packed2 = (packed2 << 64) + 7
        packed2 = (packed2 << 32) + 438953
        packed2 = packed2 << 81
        tmp = pedersen_hash(
            pedersen_hash(int(TOKEN_BUY, 16), int(FEE_TOKEN, 16)), int(TARGET_KEY, 16)
        )
        tmp = pedersen_hash(tmp, int(CONDITION, 16))
        expected = pedersen_hash(pedersen_hash(tmp, packed1), packed2)

        assert transfer.is_conditional
        assert hash_transfer(transfer) == format(expected, "x")

    def test_empty_condition_is_unconditional(self, transfer_data):
        transfer = TransferParams.from_mapping({**transfer_data, "condition": ""})
        assert not transfer.is_conditional

    def test_amount_overflow(self, transfer_data):
        transfer = TransferParams.from_mapping({**transfer_data, "amount": 2 ** 63})
        with pytest.raises(FieldOverflow):
            hash_transfer(transfer)

    def test_partial_fee_rejected(self, transfer_data):
        with pytest.raises(PartialFeeError):
            TransferParams.from_mapping(
                {**transfer_data, "feeSourceVaultId": 0, "feeLimit": 1}, allow_partial_fee=False
            )


class TestWithdrawalHash:
    """Test withdrawal message hashing."""

    def test_packing(self, withdrawal_data):
        withdrawal = WithdrawalParams.from_mapping(withdrawal_data)
        expected = (2 << 192) + (1 << 128) + (2 << 96) + (3 << 32) + 4
        assert pack_withdrawal_fields(withdrawal) == expected
        assert withdrawal_w5(withdrawal) == expected << 49

    def test_hash_layout(self, withdrawal_data):
        withdrawal = WithdrawalParams.from_mapping(withdrawal_data)
        w5 = ((2 << 192) + (1 << 128) + (2 << 96) + (3 << 32) + 4) << 49
        expected = pedersen_hash(
            pedersen_hash(int(withdrawal_data["assetIdCollateral"], 16), 1), w5
        )
        assert hash_withdrawal(withdrawal) == format(expected, "x")

    def test_prefix_is_optional(self, withdrawal_data):
        bare = {
            **withdrawal_data,
            "assetIdCollateral": withdrawal_data["assetIdCollateral"][2:],
            "ethAddress": "0000000000000000000000000000000000000001",
        }
        assert hash_withdrawal(WithdrawalParams.from_mapping(bare)) == hash_withdrawal(
            WithdrawalParams.from_mapping(withdrawal_data)
        )

    def test_integral_floats_match_ints(self, withdrawal_data):
        """JSON numbers decoded as floats hash like their int values."""
        as_floats = {**withdrawal_data, "positionId": 1000.0, "amount": 3.0}
        as_ints = {**withdrawal_data, "positionId": 1000, "amount": 3}
        assert hash_withdrawal(WithdrawalParams.from_mapping(as_floats)) == hash_withdrawal(
            WithdrawalParams.from_mapping(as_ints)
        )

    def test_nonce_overflow(self, withdrawal_data):
        withdrawal = WithdrawalParams.from_mapping({**withdrawal_data, "nonce": 2 ** 32})
        with pytest.raises(FieldOverflow) as exc_info:
            hash_withdrawal(withdrawal)
        assert exc_info.value.field == "nonce"

    def test_position_id_overflow(self, withdrawal_data):
        withdrawal = WithdrawalParams.from_mapping({**withdrawal_data, "positionId": 2 ** 64})
        with pytest.raises(FieldOverflow):
            hash_withdrawal(withdrawal)

    def test_asset_id_must_be_field_element(self, withdrawal_data):
        withdrawal = WithdrawalParams.from_mapping(
            {**withdrawal_data, "assetIdCollateral": "0x" + "f" * 64}
        )
        with pytest.raises(FieldOverflow):
            hash_withdrawal(withdrawal)
