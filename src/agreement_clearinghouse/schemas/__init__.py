"""Pydantic input schemas."""

from agreement_clearinghouse.schemas.offer import (
    UINT256_MAX,
    OfferTerms,
    to_address,
    to_bytes32,
)

__all__ = [
    "UINT256_MAX",
    "OfferTerms",
    "to_address",
    "to_bytes32",
]
