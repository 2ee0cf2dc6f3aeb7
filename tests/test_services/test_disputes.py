"""Tests for the dispute lifecycle through the AgreementManager."""

from __future__ import annotations

import pytest

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32
from agreement_clearinghouse.domain.enums import DisputeStatus, EventType, Role
from agreement_clearinghouse.domain.exceptions import (
    ConflictError,
    DisputeNotFoundError,
    DuplicateDisputeError,
    InvalidDisputeStatusError,
    InvalidStateTransitionError,
    MissingRoleError,
    ValidationError,
)
from agreement_clearinghouse.services.agreement_manager import AgreementManager
from agreement_clearinghouse.signing.encoding import compute_dispute_id
from agreement_clearinghouse.signing.signer import LocalSigner


class TestRaiseDispute:
    @pytest.mark.asyncio
    async def test_standalone_dispute(
        self,
        manager: AgreementManager,
        outsider: LocalSigner,
        clock,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")

        assert dispute_id == compute_dispute_id(outsider.address, clock.now, None, "ipfs://x")
        dispute = await manager.get_dispute(dispute_id)
        assert dispute.status == DisputeStatus.RAISED
        assert dispute.claimant == outsider.address
        assert dispute.offer_id == ZERO_BYTES32
        assert not dispute.has_offer
        assert dispute.created_at == clock.now

    @pytest.mark.asyncio
    async def test_linked_dispute_event(
        self,
        manager: AgreementManager,
        investor: LocalSigner,
    ) -> None:
        offer_id = b"\x42" * 32
        dispute_id = await manager.raise_dispute(investor.address, offer_id, "ipfs://evidence")

        dispute = await manager.get_dispute(dispute_id)
        assert dispute.has_offer
        (event,) = await manager.get_events(dispute_id)
        assert event.event_type == EventType.DISPUTE_RAISED
        assert event.payload == {
            "dispute_id": "0x" + dispute_id.hex(),
            "offer_id": "0x" + offer_id.hex(),
            "claimant": investor.address,
            "evidence_uri": "ipfs://evidence",
        }

    @pytest.mark.asyncio
    async def test_same_claim_in_same_second_collides(
        self,
        manager: AgreementManager,
        outsider: LocalSigner,
        clock,
    ) -> None:
        await manager.raise_dispute(outsider.address, None, "ipfs://x")

        with pytest.raises(DuplicateDisputeError) as exc_info:
            await manager.raise_dispute(outsider.address, None, "ipfs://x")
        assert isinstance(exc_info.value, ConflictError)

        clock.advance(1)
        assert await manager.raise_dispute(outsider.address, None, "ipfs://x")

    @pytest.mark.asyncio
    async def test_invalid_claimant(self, manager: AgreementManager) -> None:
        with pytest.raises(ValidationError):
            await manager.raise_dispute("not-an-address", None, "ipfs://x")


class TestSetDisputeStatus:
    @pytest.mark.asyncio
    async def test_resolve_once(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")

        await manager.set_dispute_status(dispute_id, DisputeStatus.RESOLVED, caller=admin.address)
        assert (await manager.get_dispute(dispute_id)).status == DisputeStatus.RESOLVED

        with pytest.raises(InvalidStateTransitionError):
            await manager.set_dispute_status(
                dispute_id, DisputeStatus.RESOLVED, caller=admin.address
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["ACKNOWLEDGED", "RESOLVED", "REJECTED"])
    async def test_every_decision_is_final(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
        target: str,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")
        await manager.set_dispute_status(dispute_id, target, caller=admin.address)

        for other in ("ACKNOWLEDGED", "RESOLVED", "REJECTED"):
            with pytest.raises(InvalidStateTransitionError):
                await manager.set_dispute_status(dispute_id, other, caller=admin.address)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["NONE", "RAISED", "SETTLED"])
    async def test_invalid_targets(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
        target: str,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")

        with pytest.raises(InvalidDisputeStatusError):
            await manager.set_dispute_status(dispute_id, target, caller=admin.address)

    @pytest.mark.asyncio
    async def test_guardian_role_required(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")

        with pytest.raises(MissingRoleError):
            await manager.set_dispute_status(
                dispute_id, DisputeStatus.RESOLVED, caller=outsider.address
            )

        await manager.grant_role(Role.GUARDIAN, outsider.address, caller=admin.address)
        await manager.set_dispute_status(
            dispute_id, DisputeStatus.ACKNOWLEDGED, caller=outsider.address
        )

    @pytest.mark.asyncio
    async def test_status_change_event(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
    ) -> None:
        dispute_id = await manager.raise_dispute(outsider.address, None, "ipfs://x")
        await manager.set_dispute_status(dispute_id, DisputeStatus.REJECTED, caller=admin.address)

        events = await manager.get_events(dispute_id)
        assert [e.event_type for e in events] == [
            EventType.DISPUTE_RAISED,
            EventType.DISPUTE_STATUS_CHANGED,
        ]
        assert events[-1].payload == {
            "dispute_id": "0x" + dispute_id.hex(),
            "new_status": "REJECTED",
        }

    @pytest.mark.asyncio
    async def test_unknown_dispute(self, manager: AgreementManager, admin: LocalSigner) -> None:
        with pytest.raises(DisputeNotFoundError):
            await manager.set_dispute_status(
                b"\x07" * 32, DisputeStatus.RESOLVED, caller=admin.address
            )
