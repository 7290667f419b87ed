"""
Type definitions for L2 message signing.

Uses Pydantic for runtime validation. Every bundle is immutable and accepts
both snake_case names and the camelCase names used on the wire.

Numeric fields take an int or a decimal string; both normalize to the same
int. Hex fields are parsed to ints up front.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .config import get_settings
from .exceptions import PartialFeeError, SignatureLengthError, ValidationError
from .utils.validators import ensure_hex_prefix, parse_hex, parse_uint

logger = logging.getLogger(__name__)

SIGNATURE_COMPONENT_HEX_LENGTH = 64

# Wire name -> model field name
FEE_FIELD_ALIASES = {
    "feeTokenId": "fee_token_id",
    "feeSourceVaultId": "fee_source_vault_id",
    "feeLimit": "fee_limit",
}


class _ParamsModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class FeeParams(_ParamsModel):
    """Fee sub-bundle. All three fields are required."""

    fee_token_id: int = Field(..., alias="feeTokenId", description="Fee asset id (0x hex)")
    fee_source_vault_id: int = Field(..., alias="feeSourceVaultId", description="Vault paying the fee")
    fee_limit: int = Field(..., alias="feeLimit", description="Maximum fee amount")

    @field_validator("fee_token_id", mode="before")
    @classmethod
    def parse_fee_token(cls, v: Any) -> int:
        return parse_hex(v, "fee_token_id")

    @field_validator("fee_source_vault_id", "fee_limit", mode="before")
    @classmethod
    def parse_numeric(cls, v: Any, info: ValidationInfo) -> int:
        return parse_uint(v, info.field_name)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def _split_fee(
    data: Mapping[str, Any],
    allow_partial_fee: Optional[bool]
) -> tuple[dict[str, Any], Optional[FeeParams]]:
    """
    Separate fee fields from a loose mapping and apply the selection rule.

    The fee variant is used only when all three fee fields are present.
    ``feeSourceVaultId`` is checked against None since 0 is a valid vault.
    """
    rest = dict(data)
    nested_fee = rest.pop("fee", None)
    fee_values: dict[str, Any] = {}
    for wire_name, field_name in FEE_FIELD_ALIASES.items():
        wire_value = rest.pop(wire_name, None)
        field_value = rest.pop(field_name, None)
        fee_values[field_name] = wire_value if _is_present(wire_value) else field_value

    present = [name for name, value in fee_values.items() if _is_present(value)]
    if not present:
        if nested_fee is not None:
            return rest, FeeParams.model_validate(nested_fee)
        return rest, None
    if len(present) == len(FEE_FIELD_ALIASES):
        return rest, FeeParams(**fee_values)

    missing = [name for name in fee_values if name not in present]
    if allow_partial_fee is None:
        allow_partial_fee = get_settings().allow_partial_fee

    if not allow_partial_fee:
        raise PartialFeeError(
            f"Incomplete fee fields: got {present}, missing {missing}",
            present=present, missing=missing
        )

    logger.warning(
        f"Dropping incomplete fee fields {present} (missing {missing}); "
        f"signing the no-fee message"
    )
    return rest, None


def _from_mapping(cls, data: Mapping[str, Any], allow_partial_fee: Optional[bool]):
    if not isinstance(data, Mapping):
        raise ValidationError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
    rest, fee = _split_fee(data, allow_partial_fee)
    return cls(**rest, fee=fee)


class LimitOrderParams(_ParamsModel):
    """StarkEx limit order (with or without fee)."""

    vault_id_sell: int = Field(..., alias="vaultIdSell")
    vault_id_buy: int = Field(..., alias="vaultIdBuy")
    amount_sell: int = Field(..., alias="amountSell")
    amount_buy: int = Field(..., alias="amountBuy")
    token_sell: int = Field(..., alias="tokenSell", description="Asset id (0x hex)")
    token_buy: int = Field(..., alias="tokenBuy", description="Asset id (0x hex)")
    nonce: int
    expiration_timestamp: int = Field(..., alias="expirationTimestamp")
    fee: Optional[FeeParams] = None

    @field_validator("token_sell", "token_buy", mode="before")
    @classmethod
    def parse_token(cls, v: Any, info: ValidationInfo) -> int:
        return parse_hex(v, info.field_name)

    @field_validator(
        "vault_id_sell", "vault_id_buy", "amount_sell", "amount_buy",
        "nonce", "expiration_timestamp", mode="before"
    )
    @classmethod
    def parse_numeric(cls, v: Any, info: ValidationInfo) -> int:
        return parse_uint(v, info.field_name)

    @property
    def has_fee(self) -> bool:
        return self.fee is not None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        allow_partial_fee: Optional[bool] = None
    ) -> "LimitOrderParams":
        """
        Build from a loose mapping with flat fee fields.

        Args:
            data: e.g. {"vaultIdSell": 1, ..., "feeTokenId": "0x..", ...}
            allow_partial_fee: Drop incomplete fee fields instead of raising
                (default: EDGEX_ALLOW_PARTIAL_FEE)

        Raises:
            PartialFeeError: If only some fee fields are present and
                partial fees are not allowed
        """
        return _from_mapping(cls, data, allow_partial_fee)


class TransferParams(_ParamsModel):
    """StarkEx transfer (with or without fee, optionally conditional)."""

    amount: int
    nonce: int
    sender_vault_id: int = Field(..., alias="senderVaultId")
    token: int = Field(..., description="Asset id (0x hex)")
    target_vault_id: int = Field(..., alias="targetVaultId")
    target_public_key: int = Field(..., alias="targetPublicKey", description="Receiver stark key (0x hex)")
    expiration_timestamp: int = Field(..., alias="expirationTimestamp")
    condition: Optional[int] = Field(None, description="Fact condition (0x hex) for conditional transfers")
    fee: Optional[FeeParams] = None

    @field_validator("token", "target_public_key", mode="before")
    @classmethod
    def parse_hex_field(cls, v: Any, info: ValidationInfo) -> int:
        return parse_hex(v, info.field_name)

    @field_validator("condition", mode="before")
    @classmethod
    def parse_condition(cls, v: Any) -> Optional[int]:
        if not _is_present(v):
            return None
        return parse_hex(v, "condition")

    @field_validator(
        "amount", "nonce", "sender_vault_id", "target_vault_id",
        "expiration_timestamp", mode="before"
    )
    @classmethod
    def parse_numeric(cls, v: Any, info: ValidationInfo) -> int:
        return parse_uint(v, info.field_name)

    @property
    def has_fee(self) -> bool:
        return self.fee is not None

    @property
    def is_conditional(self) -> bool:
        return self.condition is not None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        allow_partial_fee: Optional[bool] = None
    ) -> "TransferParams":
        """Build from a loose mapping with flat fee fields (see LimitOrderParams)."""
        return _from_mapping(cls, data, allow_partial_fee)


class WithdrawalParams(_ParamsModel):
    """StarkEx withdrawal to an Ethereum address."""

    asset_id_collateral: int = Field(..., alias="assetIdCollateral", description="Collateral asset id (hex, 0x optional)")
    position_id: int = Field(..., alias="positionId")
    eth_address: int = Field(..., alias="ethAddress", description="Destination address (hex, 0x optional)")
    nonce: int
    expiration_timestamp: int = Field(..., alias="expirationTimestamp", description="Unix seconds")
    amount: int

    @field_validator("asset_id_collateral", "eth_address", mode="before")
    @classmethod
    def parse_hex_field(cls, v: Any, info: ValidationInfo) -> int:
        if isinstance(v, str):
            v = ensure_hex_prefix(v.strip())
        return parse_hex(v, info.field_name)

    @field_validator("position_id", "nonce", "expiration_timestamp", "amount", mode="before")
    @classmethod
    def parse_numeric(cls, v: Any, info: ValidationInfo) -> int:
        return parse_uint(v, info.field_name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WithdrawalParams":
        """Build from a loose mapping."""
        if not isinstance(data, Mapping):
            raise ValidationError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
        return cls(**data)


class L2Signature(BaseModel):
    """L2 message signature, each component 64 lowercase hex chars."""
    model_config = ConfigDict(frozen=True)

    r: str
    s: str

    @classmethod
    def from_components(cls, r: int, s: int) -> "L2Signature":
        """
        Serialize integer components.

        Raises:
            SignatureLengthError: If a component does not fit in 64 hex chars
        """
        r_hex = format(r, f"0{SIGNATURE_COMPONENT_HEX_LENGTH}x")
        s_hex = format(s, f"0{SIGNATURE_COMPONENT_HEX_LENGTH}x")
        for component in (r_hex, s_hex):
            if len(component) != SIGNATURE_COMPONENT_HEX_LENGTH:
                raise SignatureLengthError(
                    f"L2 signature component has incorrect length "
                    f"(expected {SIGNATURE_COMPONENT_HEX_LENGTH} chars)",
                    expected=SIGNATURE_COMPONENT_HEX_LENGTH,
                    actual=len(component)
                )
        return cls(r=r_hex, s=s_hex)

    def to_dict(self) -> dict[str, str]:
        return {"r": self.r, "s": self.s}
