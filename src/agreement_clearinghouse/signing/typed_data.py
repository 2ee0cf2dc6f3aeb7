"""EIP-712 signing digest for offers.

Issuer and investor sign the same structured-data digest:

    keccak256(0x19 0x01 || domainSeparator || hashStruct(Offer))

The domain binds every signature to one deployment (protocol name, version,
network id and verifying service address); changing any of them invalidates
all previously valid signatures.

Usage:
    domain = DomainParameters(chain_id=1, verifying_contract="0x...")
    digest = build_signing_digest(terms, domain)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from agreement_clearinghouse.signing.encoding import hash_text

if TYPE_CHECKING:
    from agreement_clearinghouse.schemas.offer import OfferTerms

EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)

# (member name, solidity type, OfferTerms attribute), in schema order
OFFER_MEMBERS: tuple[tuple[str, str, str], ...] = (
    ("issuer", "address", "issuer"),
    ("investor", "address", "investor"),
    ("tokenAddress", "address", "token_address"),
    ("partition", "bytes32", "partition"),
    ("tokenId", "uint256", "token_id"),
    ("amount", "uint256", "amount"),
    ("classId", "uint256", "class_id"),
    ("nonceId", "uint256", "nonce_id"),
    ("documentHash", "bytes32", "document_hash"),
    ("documentURI", "string", "document_uri"),
    ("expiry", "uint256", "expiry"),
    ("nonce", "uint256", "nonce"),
)

OFFER_TYPE = "Offer(" + ",".join(f"{t} {n}" for n, t, _ in OFFER_MEMBERS) + ")"

EIP712_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
OFFER_TYPEHASH = keccak(text=OFFER_TYPE)

# eth_account-style type definitions, for wallets that sign typed data themselves
OFFER_TYPES: dict[str, list[dict[str, str]]] = {
    "Offer": [{"name": n, "type": t} for n, t, _ in OFFER_MEMBERS],
}


@dataclass(frozen=True)
class DomainParameters:
    """EIP-712 domain supplied by the embedding environment."""

    chain_id: int
    verifying_contract: str
    name: str = "AgreementManager"
    version: str = "1"
    separator: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "verifying_contract", to_checksum_address(self.verifying_contract))
        object.__setattr__(self, "separator", domain_separator(self))

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def domain_separator(domain: DomainParameters) -> bytes:
    """hashStruct(EIP712Domain)."""
    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                EIP712_DOMAIN_TYPEHASH,
                hash_text(domain.name),
                hash_text(domain.version),
                domain.chain_id,
                domain.verifying_contract,
            ],
        )
    )


def offer_struct_hash(terms: OfferTerms) -> bytes:
    """hashStruct(Offer); ``string`` members are replaced by their keccak-256."""
    types = ["bytes32"]
    values: list[Any] = [OFFER_TYPEHASH]
    for _, sol_type, attr in OFFER_MEMBERS:
        value = getattr(terms, attr)
        if sol_type == "string":
            types.append("bytes32")
            values.append(hash_text(value))
        else:
            types.append(sol_type)
            values.append(value)
    return keccak(encode(types, values))


def build_signing_digest(terms: OfferTerms, domain: DomainParameters) -> bytes:
    """The 32-byte digest issuer and investor signatures are produced over."""
    return keccak(b"\x19\x01" + domain.separator + offer_struct_hash(terms))


def typed_data_message(terms: OfferTerms) -> dict[str, Any]:
    """The Offer message in the member naming used by typed-data wallets."""
    return {name: getattr(terms, attr) for name, _, attr in OFFER_MEMBERS}
