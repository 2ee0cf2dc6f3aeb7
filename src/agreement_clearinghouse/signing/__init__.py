"""Canonical encoding, EIP-712 digests and signature recovery."""

from agreement_clearinghouse.signing.authority import EcdsaSignatureAuthority, split_signature
from agreement_clearinghouse.signing.encoding import (
    compute_dispute_id,
    compute_offer_id,
    encode_offer_fields,
    hash_text,
)
from agreement_clearinghouse.signing.signer import LocalSigner
from agreement_clearinghouse.signing.typed_data import (
    EIP712_DOMAIN_TYPEHASH,
    OFFER_TYPE,
    OFFER_TYPEHASH,
    OFFER_TYPES,
    DomainParameters,
    build_signing_digest,
    domain_separator,
    offer_struct_hash,
    typed_data_message,
)

__all__ = [
    "EIP712_DOMAIN_TYPEHASH",
    "OFFER_TYPE",
    "OFFER_TYPEHASH",
    "OFFER_TYPES",
    "DomainParameters",
    "EcdsaSignatureAuthority",
    "LocalSigner",
    "build_signing_digest",
    "compute_dispute_id",
    "compute_offer_id",
    "domain_separator",
    "encode_offer_fields",
    "hash_text",
    "offer_struct_hash",
    "split_signature",
    "typed_data_message",
]
