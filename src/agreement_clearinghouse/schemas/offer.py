"""Pydantic schema for the issuer-signed offer terms.

OfferTerms normalizes wire values (hex strings, mixed-case addresses) into the
canonical Python types the digest engine encodes: checksummed address
strings, 32-byte ``bytes`` and bounded ints. Field-format problems surface as
``pydantic.ValidationError`` at construction; business rules (expiry, zero
addresses, escrowless amounts) are enforced by the offer ledger.
"""

from __future__ import annotations

from typing import Any

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from agreement_clearinghouse.domain.custody_protocol import ZERO_ADDRESS, ZERO_BYTES32, AssetRef
from agreement_clearinghouse.domain.enums import AssetKind

UINT256_MAX = 2**256 - 1

_ADDRESS_FIELDS = ("issuer", "investor", "token_address", "delegated_to")
_BYTES32_FIELDS = ("partition", "document_hash")
_UINT_FIELDS = ("token_id", "amount", "class_id", "nonce_id", "expiry", "nonce")


def to_bytes32(value: Any) -> bytes:
    """Coerce a 0x-prefixed hex string or raw bytes into exactly 32 bytes."""
    if isinstance(value, str):
        if not value.startswith("0x"):
            raise ValueError("hex value must be 0x-prefixed")
        value = bytes.fromhex(value[2:])
    if not isinstance(value, bytes | bytearray) or len(value) != 32:
        raise ValueError("expected 32 bytes")
    return bytes(value)


def to_address(value: Any) -> str:
    """Validate an EVM address and return its checksummed form."""
    if isinstance(value, bytes) and len(value) == 20:
        return to_checksum_address(value)
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return to_checksum_address(value)


class OfferTerms(BaseModel):
    """Canonical offer fields shared by issuer and investor.

    The twelve fields from ``issuer`` through ``nonce`` are bound by both the
    offer id and the signing digest. ``delegated_to`` and ``asset_kind`` are
    execution settings chosen by the issuer at creation time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    issuer: str = Field(..., description="Offer maker; must sign the offer")
    investor: str = Field(..., description="Intended counterparty")
    token_address: str = Field(
        default=ZERO_ADDRESS,
        description="Asset contract address (zero address for escrowless offers)",
    )
    partition: bytes = Field(default=ZERO_BYTES32, description="ERC-1400 partition")
    token_id: int = Field(default=0, description="ERC-721/1155 id (0 for fungibles)")
    amount: int = Field(default=0, description="Units to escrow (1 for ERC-721)")
    class_id: int = Field(default=0, description="ERC-3475 class id")
    nonce_id: int = Field(default=0, description="ERC-3475 nonce id")
    document_hash: bytes = Field(
        default=ZERO_BYTES32,
        description="Hash of the off-channel agreement document",
    )
    document_uri: str = Field(default="", description="Informational document location")
    expiry: int = Field(..., description="Unix seconds after which acceptance is refused")
    nonce: int = Field(..., description="Issuer-scoped anti-replay counter")
    delegated_to: str = Field(
        default=ZERO_ADDRESS,
        description="If set, the only address allowed to execute acceptance",
    )
    asset_kind: AssetKind = Field(
        default=AssetKind.FUNGIBLE,
        description="Asset family, selects the escrow custodian",
    )

    @field_validator(*_ADDRESS_FIELDS, mode="before")
    @classmethod
    def _normalize_address(cls, value: Any) -> str:
        return to_address(value)

    @field_validator(*_BYTES32_FIELDS, mode="before")
    @classmethod
    def _normalize_bytes32(cls, value: Any) -> bytes:
        return to_bytes32(value)

    @field_validator(*_UINT_FIELDS)
    @classmethod
    def _check_uint256(cls, value: int) -> int:
        if not 0 <= value <= UINT256_MAX:
            raise ValueError("value out of uint256 range")
        return value

    @property
    def is_escrowless(self) -> bool:
        return self.token_address == ZERO_ADDRESS

    @property
    def asset(self) -> AssetRef:
        """The asset reference handed to the escrow custodian."""
        return AssetRef(
            token_address=self.token_address,
            kind=self.asset_kind,
            partition=self.partition,
            token_id=self.token_id,
            amount=self.amount,
            class_id=self.class_id,
            nonce_id=self.nonce_id,
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to JSON-friendly values (0x-hex bytes, decimal-string ints)."""
        return {
            "issuer": self.issuer,
            "investor": self.investor,
            "token_address": self.token_address,
            "partition": "0x" + self.partition.hex(),
            "token_id": str(self.token_id),
            "amount": str(self.amount),
            "class_id": str(self.class_id),
            "nonce_id": str(self.nonce_id),
            "document_hash": "0x" + self.document_hash.hex(),
            "document_uri": self.document_uri,
            "expiry": str(self.expiry),
            "nonce": str(self.nonce),
            "delegated_to": self.delegated_to,
            "asset_kind": self.asset_kind.value,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> OfferTerms:
        """Inverse of ``to_payload``."""
        values = dict(payload)
        for name in _UINT_FIELDS:
            values[name] = int(values[name])
        return cls(**values)
