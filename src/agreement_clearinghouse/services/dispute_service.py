"""Dispute Service — claim records moderated by guardians.

Disputes never move funds. Any party may raise one, optionally linked to an
offer; a GUARDIAN closes it once with ACKNOWLEDGED, RESOLVED or REJECTED.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32
from agreement_clearinghouse.domain.enums import DisputeStatus, EventType, Role
from agreement_clearinghouse.domain.exceptions import (
    DisputeNotFoundError,
    DuplicateDisputeError,
    InvalidDisputeStatusError,
)
from agreement_clearinghouse.domain.models import AgreementEvent, Dispute
from agreement_clearinghouse.domain.state_machine import (
    DISPUTE_STATUS_EVENTS,
    DisputeStateMachine,
    fire_transition,
)
from agreement_clearinghouse.logging_config import get_logger
from agreement_clearinghouse.signing.encoding import compute_dispute_id

if TYPE_CHECKING:
    from agreement_clearinghouse.domain.roles import AccessControl
    from agreement_clearinghouse.domain.store_protocol import AgreementStore

logger = get_logger(__name__)


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


class DisputeService:
    """Manages the dispute lifecycle."""

    def __init__(self, store: AgreementStore, access: AccessControl) -> None:
        self._store = store
        self._access = access

    async def raise_dispute(
        self,
        claimant: str,
        offer_id: bytes | None,
        evidence_uri: str,
        now: int,
    ) -> AgreementEvent:
        """Open a dispute in RAISED state.

        The id hashes the claimant, the current time, the linked offer id and
        the evidence URI, so the same claim raised twice in one second
        collides and is refused.
        """
        linked = offer_id if offer_id is not None else ZERO_BYTES32
        dispute_id = compute_dispute_id(claimant, now, offer_id, evidence_uri)
        if await self._store.get_dispute(dispute_id) is not None:
            raise DuplicateDisputeError(_hex(dispute_id))

        dispute = Dispute(
            id=dispute_id,
            claimant=claimant,
            evidence_uri=evidence_uri,
            offer_id=linked,
            status=DisputeStatus(fire_transition(DisputeStateMachine, "NONE", "open")),
            created_at=now,
        )
        event = AgreementEvent(
            event_type=EventType.DISPUTE_RAISED,
            subject_id=dispute_id,
            actor=claimant,
            payload={
                "dispute_id": _hex(dispute_id),
                "offer_id": _hex(linked),
                "claimant": claimant,
                "evidence_uri": evidence_uri,
            },
            created_at=now,
        )

        async with self._store.transaction():
            await self._store.save_dispute(dispute)
            await self._store.record_event(event)

        logger.info(
            "dispute.raised",
            dispute_id=_hex(dispute_id),
            offer_id=_hex(linked) if offer_id is not None else None,
            claimant=claimant,
        )
        return event

    async def set_dispute_status(
        self,
        dispute_id: bytes,
        new_status: DisputeStatus,
        caller: str,
        now: int,
    ) -> AgreementEvent:
        """Close a RAISED dispute. Guardian only."""
        self._access.require(Role.GUARDIAN, caller)

        event_name = DISPUTE_STATUS_EVENTS.get(new_status)
        if event_name is None:
            raise InvalidDisputeStatusError(str(new_status))

        dispute = await self._get_dispute_or_raise(dispute_id)
        old_status = dispute.status
        dispute.status = DisputeStatus(
            fire_transition(DisputeStateMachine, old_status.value, event_name)
        )

        event = AgreementEvent(
            event_type=EventType.DISPUTE_STATUS_CHANGED,
            subject_id=dispute.id,
            actor=caller,
            payload={"dispute_id": _hex(dispute.id), "new_status": dispute.status.value},
            created_at=now,
        )
        async with self._store.transaction():
            await self._store.save_dispute(dispute)
            await self._store.record_event(event)

        logger.info(
            "dispute.status_changed",
            dispute_id=_hex(dispute.id),
            old_status=old_status.value,
            new_status=dispute.status.value,
            by=caller,
        )
        return event

    async def get_dispute(self, dispute_id: bytes) -> Dispute:
        """Get a dispute or raise."""
        return await self._get_dispute_or_raise(dispute_id)

    async def _get_dispute_or_raise(self, dispute_id: bytes) -> Dispute:
        dispute = await self._store.get_dispute(dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(_hex(dispute_id))
        return dispute
