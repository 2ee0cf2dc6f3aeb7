"""Tests for roles, pausing and event subscriptions on the AgreementManager."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32
from agreement_clearinghouse.domain.enums import EventType, Role
from agreement_clearinghouse.domain.exceptions import (
    EnginePausedError,
    MissingRoleError,
)
from agreement_clearinghouse.domain.models import AgreementEvent
from agreement_clearinghouse.domain.roles import AccessControl
from agreement_clearinghouse.schemas.offer import OfferTerms
from agreement_clearinghouse.services.agreement_manager import AgreementManager
from agreement_clearinghouse.signing.signer import LocalSigner

ZERO = "0x0000000000000000000000000000000000000000"


class TestAccessControl:
    def test_admin_holds_every_role(self) -> None:
        access = AccessControl(admin="0xA")
        assert all(access.has_role(role, "0xA") for role in Role)

    def test_grant_and_revoke_report_changes(self) -> None:
        access = AccessControl()
        assert access.grant(Role.GUARDIAN, "0xB") is True
        assert access.grant(Role.GUARDIAN, "0xB") is False
        assert access.members(Role.GUARDIAN) == ["0xB"]
        assert access.revoke(Role.GUARDIAN, "0xB") is True
        assert access.revoke(Role.GUARDIAN, "0xB") is False

    def test_require(self) -> None:
        with pytest.raises(MissingRoleError):
            AccessControl().require(Role.PAUSER, "0xC")


class TestRoles:
    @pytest.mark.asyncio
    async def test_admin_grants_and_revokes(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
        outsider: LocalSigner,
    ) -> None:
        assert manager.has_role(Role.ADMIN, admin.address)
        assert not manager.has_role(Role.PAUSER, outsider.address)

        assert await manager.grant_role(Role.PAUSER, outsider.address, caller=admin.address)
        assert manager.has_role("PAUSER", outsider.address.lower())
        assert not await manager.grant_role(Role.PAUSER, outsider.address, caller=admin.address)

        assert await manager.revoke_role(Role.PAUSER, outsider.address, caller=admin.address)
        assert not manager.has_role(Role.PAUSER, outsider.address)

        events = await manager.get_events()
        assert [e.event_type for e in events] == [EventType.ROLE_GRANTED, EventType.ROLE_REVOKED]
        assert events[0].payload == {"role": "PAUSER", "account": outsider.address}

    @pytest.mark.asyncio
    async def test_non_admin_cannot_grant(
        self,
        manager: AgreementManager,
        outsider: LocalSigner,
    ) -> None:
        with pytest.raises(MissingRoleError):
            await manager.grant_role(Role.GUARDIAN, outsider.address, caller=outsider.address)


class TestPause:
    @pytest.mark.asyncio
    async def test_pause_blocks_every_mutation(
        self,
        manager: AgreementManager,
        make_terms: Callable[..., OfferTerms],
        admin: LocalSigner,
        issuer: LocalSigner,
        investor: LocalSigner,
    ) -> None:
        terms = make_terms(token_address=ZERO, amount=0)
        offer_id = await manager.create_offer(terms, issuer.sign_offer(terms, manager.domain))

        await manager.pause(caller=admin.address)
        assert manager.paused

        second = make_terms(token_address=ZERO, amount=0, nonce=2)
        with pytest.raises(EnginePausedError):
            await manager.create_offer(second, issuer.sign_offer(second, manager.domain))
        with pytest.raises(EnginePausedError):
            await manager.cancel_offer(offer_id, caller=issuer.address)
        with pytest.raises(EnginePausedError):
            await manager.reject_offer(offer_id, caller=investor.address)
        with pytest.raises(EnginePausedError):
            await manager.accept_offer(
                offer_id, investor.sign_offer(terms, manager.domain), caller=investor.address
            )
        with pytest.raises(EnginePausedError):
            await manager.clean_up_expired_offer(offer_id, caller=investor.address)
        with pytest.raises(EnginePausedError):
            await manager.raise_dispute(investor.address, offer_id, "ipfs://x")

        # reads keep working
        assert (await manager.get_offer(offer_id)).terms == terms

        await manager.unpause(caller=admin.address)
        await manager.cancel_offer(offer_id, caller=issuer.address)

        events = await manager.get_events()
        assert [e.event_type for e in events] == [EventType.PAUSED, EventType.UNPAUSED]

    @pytest.mark.asyncio
    async def test_pauser_role_required(
        self,
        manager: AgreementManager,
        outsider: LocalSigner,
    ) -> None:
        with pytest.raises(MissingRoleError):
            await manager.pause(caller=outsider.address)
        assert not manager.paused

    @pytest.mark.asyncio
    async def test_pausing_twice_records_once(
        self,
        manager: AgreementManager,
        admin: LocalSigner,
    ) -> None:
        await manager.pause(caller=admin.address)
        await manager.pause(caller=admin.address)
        assert len(await manager.get_events(ZERO_BYTES32)) == 1


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_listeners_receive_committed_events(
        self,
        manager: AgreementManager,
        make_terms: Callable[..., OfferTerms],
        issuer: LocalSigner,
    ) -> None:
        received: list[AgreementEvent] = []

        async def async_listener(event: AgreementEvent) -> None:
            received.append(event)

        manager.subscribe(received.append)
        manager.subscribe(async_listener)

        terms = make_terms(token_address=ZERO, amount=0)
        offer_id = await manager.create_offer(terms, issuer.sign_offer(terms, manager.domain))

        assert len(received) == 2
        assert all(e.event_type == EventType.OFFER_CREATED for e in received)
        assert received[0].subject_id == offer_id

    @pytest.mark.asyncio
    async def test_failed_operation_publishes_nothing(
        self,
        manager: AgreementManager,
        make_terms: Callable[..., OfferTerms],
        investor: LocalSigner,
    ) -> None:
        received: list[AgreementEvent] = []
        manager.subscribe(received.append)

        terms = make_terms(token_address=ZERO, amount=0)
        with pytest.raises(Exception):
            await manager.create_offer(terms, investor.sign_offer(terms, manager.domain))
        assert received == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_undo_transition(
        self,
        manager: AgreementManager,
        make_terms: Callable[..., OfferTerms],
        issuer: LocalSigner,
    ) -> None:
        received: list[AgreementEvent] = []

        def broken(event: AgreementEvent) -> None:
            raise RuntimeError("listener crashed")

        manager.subscribe(broken)
        manager.subscribe(received.append)

        terms = make_terms(token_address=ZERO, amount=0)
        offer_id = await manager.create_offer(terms, issuer.sign_offer(terms, manager.domain))

        assert await manager.get_offer(offer_id)
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(
        self,
        manager: AgreementManager,
        make_terms: Callable[..., OfferTerms],
        issuer: LocalSigner,
    ) -> None:
        received: list[AgreementEvent] = []
        unsubscribe = manager.subscribe(received.append)
        unsubscribe()

        terms = make_terms(token_address=ZERO, amount=0)
        await manager.create_offer(terms, issuer.sign_offer(terms, manager.domain))
        assert received == []


class TestProtocolInfo:
    def test_name_and_version(self, manager: AgreementManager) -> None:
        assert manager.protocol_name == "AgreementManager"
        assert manager.protocol_version == "1"


class TestCreateManager:
    @pytest.mark.asyncio
    async def test_wires_settings(self, admin: LocalSigner) -> None:
        from agreement_clearinghouse.config import Settings
        from agreement_clearinghouse.infrastructure.memory_store import InMemoryAgreementStore
        from agreement_clearinghouse.main import create_manager

        settings = Settings(
            _env_file=None,
            store_backend="memory",
            admin_address=admin.address,
            chain_id=5,
            eip712_name="TestManager",
        )
        manager = await create_manager(settings)

        assert manager.has_role(Role.GUARDIAN, admin.address)
        assert manager.domain.chain_id == 5
        assert manager.protocol_name == "TestManager"
        assert isinstance(manager._store, InMemoryAgreementStore)
