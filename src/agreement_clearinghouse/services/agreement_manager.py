"""Agreement Manager — the single entry point for callers.

Wraps the offer, nonce and dispute services with:
    - one asyncio.Lock that sequences every mutation (reads never take it)
    - the pause switch and role checks for privileged operations
    - the clock (unix seconds) handed to every transition
    - publication of committed events to subscribers

Usage:
    manager = AgreementManager(store, CustodianRegistry.simulated(),
                               EcdsaSignatureAuthority(), domain, admin=admin)
    offer_id = await manager.create_offer(terms, issuer_sig)
    await manager.accept_offer(offer_id, investor_sig, caller=investor)
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import TYPE_CHECKING, Any

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32
from agreement_clearinghouse.domain.enums import DisputeStatus, EventType, Role
from agreement_clearinghouse.domain.exceptions import EnginePausedError, ValidationError
from agreement_clearinghouse.domain.models import AgreementEvent
from agreement_clearinghouse.domain.roles import AccessControl
from agreement_clearinghouse.logging_config import get_logger
from agreement_clearinghouse.schemas.offer import OfferTerms, to_address, to_bytes32
from agreement_clearinghouse.services.dispute_service import DisputeService
from agreement_clearinghouse.services.nonce_registry import NonceRegistry
from agreement_clearinghouse.services.offer_service import OfferService
from agreement_clearinghouse.signing.encoding import compute_offer_id

if TYPE_CHECKING:
    from collections.abc import Callable

    from agreement_clearinghouse.custodians import CustodianRegistry
    from agreement_clearinghouse.domain.models import Dispute, Offer
    from agreement_clearinghouse.domain.signature_protocol import SignatureAuthority
    from agreement_clearinghouse.domain.store_protocol import AgreementStore
    from agreement_clearinghouse.signing.typed_data import DomainParameters

    Clock = Callable[[], int]
    Listener = Callable[[AgreementEvent], Any]

logger = get_logger(__name__)

# Administrative events are logged against the all-zero subject id.
MANAGER_SUBJECT = ZERO_BYTES32


def system_clock() -> int:
    return int(time.time())


def _account(value: Any) -> str:
    try:
        return to_address(value)
    except ValueError as exc:
        raise ValidationError(str(exc), code="INVALID_ADDRESS") from exc


def _record_id(value: Any) -> bytes:
    try:
        return to_bytes32(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid 32-byte id: {value!r}", code="INVALID_ID") from exc


def _terms(value: OfferTerms | dict[str, Any]) -> OfferTerms:
    if isinstance(value, OfferTerms):
        return value
    return OfferTerms.model_validate(value)


class AgreementManager:
    """Coordinates signed offers, escrow and disputes for one ledger."""

    def __init__(
        self,
        store: AgreementStore,
        custodians: CustodianRegistry,
        authority: SignatureAuthority,
        domain: DomainParameters,
        *,
        admin: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._domain = domain
        self._clock = clock or system_clock
        self._access = AccessControl(_account(admin) if admin is not None else None)
        self._nonces = NonceRegistry(store)
        self._offers = OfferService(store, custodians, authority, domain, self._nonces)
        self._disputes = DisputeService(store, self._access)
        self._lock = asyncio.Lock()
        self._paused = False
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    async def create_offer(
        self,
        terms: OfferTerms | dict[str, Any],
        issuer_sig: bytes,
    ) -> bytes:
        """Record an issuer-signed offer and escrow its asset. Returns the offer id."""
        terms = _terms(terms)
        async with self._lock:
            self._require_not_paused()
            event = await self._offers.create_offer(terms, issuer_sig, self._clock())
        await self._publish(event)
        return event.subject_id

    async def cancel_offer(self, offer_id: bytes | str, caller: str) -> None:
        async with self._lock:
            self._require_not_paused()
            event = await self._offers.cancel_offer(
                _record_id(offer_id), _account(caller), self._clock()
            )
        await self._publish(event)

    async def accept_offer(
        self,
        offer_id: bytes | str,
        investor_sig: bytes,
        caller: str,
    ) -> None:
        async with self._lock:
            self._require_not_paused()
            event = await self._offers.accept_offer(
                _record_id(offer_id), investor_sig, _account(caller), self._clock()
            )
        await self._publish(event)

    async def reject_offer(self, offer_id: bytes | str, caller: str) -> None:
        async with self._lock:
            self._require_not_paused()
            event = await self._offers.reject_offer(
                _record_id(offer_id), _account(caller), self._clock()
            )
        await self._publish(event)

    async def clean_up_expired_offer(self, offer_id: bytes | str, caller: str) -> None:
        async with self._lock:
            self._require_not_paused()
            event = await self._offers.clean_up_expired_offer(
                _record_id(offer_id), _account(caller), self._clock()
            )
        await self._publish(event)

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    async def raise_dispute(
        self,
        claimant: str,
        offer_id: bytes | str | None,
        evidence_uri: str,
    ) -> bytes:
        """Open a dispute. Returns the dispute id."""
        linked = _record_id(offer_id) if offer_id is not None else None
        async with self._lock:
            self._require_not_paused()
            event = await self._disputes.raise_dispute(
                _account(claimant), linked, evidence_uri, self._clock()
            )
        await self._publish(event)
        return event.subject_id

    async def set_dispute_status(
        self,
        dispute_id: bytes | str,
        new_status: DisputeStatus | str,
        caller: str,
    ) -> None:
        async with self._lock:
            self._require_not_paused()
            event = await self._disputes.set_dispute_status(
                _record_id(dispute_id), new_status, _account(caller), self._clock()
            )
        await self._publish(event)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def pause(self, caller: str) -> None:
        await self._set_paused(True, _account(caller))

    async def unpause(self, caller: str) -> None:
        await self._set_paused(False, _account(caller))

    @property
    def paused(self) -> bool:
        return self._paused

    async def grant_role(self, role: Role | str, account: str, caller: str) -> bool:
        """Admin only. Returns False when the account already held the role."""
        return await self._change_role(Role(role), _account(account), _account(caller), grant=True)

    async def revoke_role(self, role: Role | str, account: str, caller: str) -> bool:
        """Admin only. Returns False when the account did not hold the role."""
        return await self._change_role(Role(role), _account(account), _account(caller), grant=False)

    def has_role(self, role: Role | str, account: str) -> bool:
        return self._access.has_role(Role(role), _account(account))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for committed events. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_offer(self, offer_id: bytes | str) -> Offer:
        return await self._offers.get_offer(_record_id(offer_id))

    async def get_offer_status(self, offer_id: bytes | str) -> dict:
        return await self._offers.get_status(_record_id(offer_id))

    async def get_dispute(self, dispute_id: bytes | str) -> Dispute:
        return await self._disputes.get_dispute(_record_id(dispute_id))

    async def is_settled(self, offer_id: bytes | str) -> bool:
        offer = await self._store.get_offer(_record_id(offer_id))
        return offer is not None and offer.settled

    async def used_nonces(self, issuer: str, nonce: int) -> bool:
        return await self._nonces.is_used(_account(issuer), nonce)

    async def next_nonce(self, issuer: str) -> int:
        return await self._nonces.next_nonce(_account(issuer))

    async def current_nonce(self, issuer: str) -> int:
        return await self._nonces.current_nonce(_account(issuer))

    async def get_events(self, subject_id: bytes | str = MANAGER_SUBJECT) -> list[AgreementEvent]:
        """Durable events for an offer or dispute id (admin history by default)."""
        return await self._store.get_events(_record_id(subject_id))

    def compute_offer_id(self, terms: OfferTerms | dict[str, Any]) -> bytes:
        return compute_offer_id(_terms(terms))

    def build_offer_digest(self, terms: OfferTerms | dict[str, Any]) -> bytes:
        """The EIP-712 digest both parties sign."""
        return self._offers.signing_digest(_terms(terms))

    @property
    def protocol_name(self) -> str:
        return self._domain.name

    @property
    def protocol_version(self) -> str:
        return self._domain.version

    @property
    def domain(self) -> DomainParameters:
        return self._domain

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_not_paused(self) -> None:
        if self._paused:
            raise EnginePausedError()

    async def _set_paused(self, paused: bool, caller: str) -> None:
        async with self._lock:
            self._access.require(Role.PAUSER, caller)
            if self._paused == paused:
                return
            event = AgreementEvent(
                event_type=EventType.PAUSED if paused else EventType.UNPAUSED,
                subject_id=MANAGER_SUBJECT,
                actor=caller,
                created_at=self._clock(),
            )
            async with self._store.transaction():
                await self._store.record_event(event)
            self._paused = paused
        logger.info("manager.paused" if paused else "manager.unpaused", by=caller)
        await self._publish(event)

    async def _change_role(self, role: Role, account: str, caller: str, *, grant: bool) -> bool:
        async with self._lock:
            self._access.require(Role.ADMIN, caller)
            changed = self._access.grant(role, account) if grant else self._access.revoke(role, account)
            if not changed:
                return False
            event = AgreementEvent(
                event_type=EventType.ROLE_GRANTED if grant else EventType.ROLE_REVOKED,
                subject_id=MANAGER_SUBJECT,
                actor=caller,
                payload={"role": role.value, "account": account},
                created_at=self._clock(),
            )
            try:
                async with self._store.transaction():
                    await self._store.record_event(event)
            except Exception:
                # keep memberships in step with the event log
                if grant:
                    self._access.revoke(role, account)
                else:
                    self._access.grant(role, account)
                raise
        logger.info(
            "role.granted" if grant else "role.revoked",
            role=role.value,
            account=account,
            by=caller,
        )
        await self._publish(event)
        return True

    async def _publish(self, event: AgreementEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "event.listener_failed",
                    event_type=event.event_type.value,
                    subject_id="0x" + event.subject_id.hex(),
                )
