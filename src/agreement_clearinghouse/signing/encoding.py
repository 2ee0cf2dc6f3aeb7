"""Canonical encoder and content identifiers.

Offer ids are keccak-256 over the ABI encoding (32-byte words) of the offer
fields, each party address preceded by a one-byte tag:

    0x01 issuer | 0x02 investor | 0x03 tokenAddress | partition | tokenId
    | amount | classId | nonceId | documentHash | keccak256(documentURI)
    | expiry | nonce

The URI enters the layout as its hash so the encoding stays fixed-width.
Two implementations given the same fields produce the same bytes; the offer id
is NOT the digest that gets signed (see signing/typed_data.py).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_abi import encode
from eth_utils import keccak

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32

if TYPE_CHECKING:
    from agreement_clearinghouse.schemas.offer import OfferTerms

ISSUER_TAG = b"\x01"
INVESTOR_TAG = b"\x02"
TOKEN_TAG = b"\x03"

OFFER_ID_LAYOUT: tuple[str, ...] = (
    "bytes1", "address",
    "bytes1", "address",
    "bytes1", "address",
    "bytes32", "uint256", "uint256", "uint256",
    "uint256", "bytes32", "bytes32", "uint256", "uint256",
)

DISPUTE_ID_LAYOUT: tuple[str, ...] = ("address", "uint256", "bytes32", "string")


def hash_text(text: str) -> bytes:
    """keccak-256 of the UTF-8 bytes of ``text``."""
    return keccak(text.encode("utf-8"))


def encode_offer_fields(terms: OfferTerms) -> bytes:
    """Return the canonical byte layout hashed into the offer id."""
    return encode(
        list(OFFER_ID_LAYOUT),
        [
            ISSUER_TAG, terms.issuer,
            INVESTOR_TAG, terms.investor,
            TOKEN_TAG, terms.token_address,
            terms.partition,
            terms.token_id,
            terms.amount,
            terms.class_id,
            terms.nonce_id,
            terms.document_hash,
            hash_text(terms.document_uri),
            terms.expiry,
            terms.nonce,
        ],
    )


def compute_offer_id(terms: OfferTerms) -> bytes:
    """Deterministic 32-byte offer id."""
    return keccak(encode_offer_fields(terms))


def compute_dispute_id(
    claimant: str,
    timestamp: int,
    offer_id: bytes | None,
    evidence_uri: str,
) -> bytes:
    """Dispute id from claimant, raise time, linked offer and evidence pointer.

    The raise time is part of the id, so two identical disputes raised in the
    same second derive the same id.
    """
    return keccak(
        encode(
            list(DISPUTE_ID_LAYOUT),
            [claimant, timestamp, offer_id or ZERO_BYTES32, evidence_uri],
        )
    )
