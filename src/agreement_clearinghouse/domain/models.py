"""Domain records stored by the ledger.

Offers carry the issuer-signed terms verbatim; everything the ledger adds
(status, custody receipt, settlement flag) sits next to them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agreement_clearinghouse.domain.custody_protocol import ZERO_ADDRESS, ZERO_BYTES32
from agreement_clearinghouse.domain.enums import DisputeStatus, EventType, OfferStatus

if TYPE_CHECKING:
    from agreement_clearinghouse.domain.custody_protocol import CustodyToken
    from agreement_clearinghouse.schemas.offer import OfferTerms


@dataclass
class Offer:
    """A stored offer.

    Attributes:
        id: 32-byte content identifier derived from the terms.
        terms: The canonical fields signed by the issuer.
        issuer_sig: Issuer signature over the signing digest.
        status: Current lifecycle status.
        custody: Custodian receipt while assets are held (None for escrowless offers
            and after release).
        settled: True once the offer has been accepted.
        investor_sig: Investor signature recorded on acceptance.
        created_at: Unix seconds at creation.
    """

    id: bytes
    terms: OfferTerms
    issuer_sig: bytes
    status: OfferStatus = OfferStatus.OFFERED
    custody: CustodyToken | None = None
    settled: bool = False
    investor_sig: bytes | None = None
    created_at: int = 0

    @property
    def issuer(self) -> str:
        return self.terms.issuer

    @property
    def investor(self) -> str:
        return self.terms.investor

    @property
    def delegated_to(self) -> str:
        return self.terms.delegated_to

    @property
    def is_delegated(self) -> bool:
        return self.terms.delegated_to != ZERO_ADDRESS

    @property
    def expiry(self) -> int:
        return self.terms.expiry


@dataclass
class Dispute:
    """An independent claim record, optionally linked to an offer."""

    id: bytes
    claimant: str
    evidence_uri: str
    offer_id: bytes = ZERO_BYTES32
    status: DisputeStatus = DisputeStatus.RAISED
    created_at: int = 0

    @property
    def has_offer(self) -> bool:
        return self.offer_id != ZERO_BYTES32


@dataclass(frozen=True)
class AgreementEvent:
    """One notification per completed transition.

    ``payload`` holds JSON-friendly values only (hex strings, decimal strings),
    so it can be stored in the durable event log as-is.
    """

    event_type: EventType
    subject_id: bytes
    actor: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: int = 0
