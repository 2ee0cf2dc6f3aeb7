"""Repository classes for database access.

Repositories encapsulate all SQL queries and translate between ORM rows and
domain records. They accept an AsyncSession and never manage their own
transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from agreement_clearinghouse.domain.custody_protocol import CustodyToken
from agreement_clearinghouse.domain.enums import DisputeStatus, EventType, OfferStatus
from agreement_clearinghouse.domain.models import AgreementEvent, Dispute, Offer
from agreement_clearinghouse.infrastructure.database.orm_models import (
    AgreementEventRecord,
    DisputeRecord,
    NonceCounterRecord,
    OfferRecord,
    UsedNonceRecord,
)
from agreement_clearinghouse.schemas.offer import OfferTerms

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def from_hex(value: str) -> bytes:
    return bytes.fromhex(value.removeprefix("0x"))


class OfferRepository:
    """Data access for offers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, offer_id: bytes) -> Offer | None:
        """Fetch an offer by its 32-byte id."""
        record = await self._session.get(OfferRecord, to_hex(offer_id))
        return self._to_domain(record) if record is not None else None

    async def save(self, offer: Offer) -> None:
        """Insert a new offer or update the mutable columns of an existing one."""
        record = await self._session.get(OfferRecord, to_hex(offer.id))
        if record is None:
            record = self._to_record(offer)
            self._session.add(record)
        else:
            record.status = offer.status.value
            record.settled = offer.settled
            record.custody_id = offer.custody.custody_id if offer.custody else None
            record.investor_sig = to_hex(offer.investor_sig) if offer.investor_sig else None
        await self._session.flush()

    @staticmethod
    def _to_record(offer: Offer) -> OfferRecord:
        terms = offer.terms.to_payload()
        return OfferRecord(
            id=to_hex(offer.id),
            **terms,
            issuer_sig=to_hex(offer.issuer_sig),
            investor_sig=to_hex(offer.investor_sig) if offer.investor_sig else None,
            status=offer.status.value,
            settled=offer.settled,
            custody_id=offer.custody.custody_id if offer.custody else None,
            created_at=offer.created_at,
        )

    @staticmethod
    def _to_domain(record: OfferRecord) -> Offer:
        terms = OfferTerms.from_payload(
            {
                "issuer": record.issuer,
                "investor": record.investor,
                "token_address": record.token_address,
                "partition": record.partition,
                "token_id": record.token_id,
                "amount": record.amount,
                "class_id": record.class_id,
                "nonce_id": record.nonce_id,
                "document_hash": record.document_hash,
                "document_uri": record.document_uri,
                "expiry": record.expiry,
                "nonce": record.nonce,
                "delegated_to": record.delegated_to,
                "asset_kind": record.asset_kind,
            }
        )
        custody = None
        if record.custody_id is not None:
            custody = CustodyToken(
                custody_id=record.custody_id,
                asset=terms.asset,
                depositor=terms.issuer,
            )
        return Offer(
            id=from_hex(record.id),
            terms=terms,
            issuer_sig=from_hex(record.issuer_sig),
            status=OfferStatus(record.status),
            custody=custody,
            settled=record.settled,
            investor_sig=from_hex(record.investor_sig) if record.investor_sig else None,
            created_at=record.created_at,
        )


class NonceRepository:
    """Data access for consumed nonces and the advisory counter."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_used(self, issuer: str, nonce: int) -> bool:
        record = await self._session.get(UsedNonceRecord, (issuer, str(nonce)))
        return record is not None

    async def mark_used(self, issuer: str, nonce: int) -> None:
        """Insert the (issuer, nonce) row and bump the counter past it."""
        self._session.add(UsedNonceRecord(issuer=issuer, nonce=str(nonce)))

        counter = await self._session.get(NonceCounterRecord, issuer)
        if counter is None:
            self._session.add(NonceCounterRecord(issuer=issuer, next_nonce=str(nonce + 1)))
        elif nonce >= int(counter.next_nonce):
            counter.next_nonce = str(nonce + 1)
        await self._session.flush()

    async def next_nonce(self, issuer: str) -> int:
        counter = await self._session.get(NonceCounterRecord, issuer)
        return int(counter.next_nonce) if counter is not None else 0


class DisputeRepository:
    """Data access for disputes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, dispute_id: bytes) -> Dispute | None:
        record = await self._session.get(DisputeRecord, to_hex(dispute_id))
        if record is None:
            return None
        return Dispute(
            id=from_hex(record.id),
            claimant=record.claimant,
            evidence_uri=record.evidence_uri,
            offer_id=from_hex(record.offer_id),
            status=DisputeStatus(record.status),
            created_at=record.created_at,
        )

    async def save(self, dispute: Dispute) -> None:
        record = await self._session.get(DisputeRecord, to_hex(dispute.id))
        if record is None:
            self._session.add(
                DisputeRecord(
                    id=to_hex(dispute.id),
                    claimant=dispute.claimant,
                    offer_id=to_hex(dispute.offer_id),
                    evidence_uri=dispute.evidence_uri,
                    status=dispute.status.value,
                    created_at=dispute.created_at,
                )
            )
        else:
            record.status = dispute.status.value
        await self._session.flush()


class EventRepository:
    """Data access for the append-only event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, event: AgreementEvent) -> None:
        """Append a new event. This is the ONLY write operation allowed."""
        self._session.add(
            AgreementEventRecord(
                subject_id=to_hex(event.subject_id),
                event_type=event.event_type.value,
                actor=event.actor,
                payload=event.payload,
                created_at=event.created_at,
            )
        )
        await self._session.flush()

    async def get_by_subject(self, subject_id: bytes) -> list[AgreementEvent]:
        """Fetch all events for an offer or dispute in recording order."""
        result = await self._session.execute(
            select(AgreementEventRecord)
            .where(AgreementEventRecord.subject_id == to_hex(subject_id))
            .order_by(AgreementEventRecord.id.asc())
        )
        return [
            AgreementEvent(
                event_type=EventType(row.event_type),
                subject_id=from_hex(row.subject_id),
                actor=row.actor,
                payload=row.payload,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]
