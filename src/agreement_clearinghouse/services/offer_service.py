"""Offer Service — core business logic for the offer lifecycle.

This is the application layer that coordinates between:
    - Domain state machine (transition guard)
    - Signature authority (issuer and investor authorization)
    - Escrow custodians (asset hold and release)
    - The agreement store (offers, nonces, event log)

Every method validates first and mutates last. Store writes for one operation
go through a single ``store.transaction()`` so a failure leaves nothing
behind. Methods return the event describing the completed transition; the
manager publishes it once the transaction has committed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from agreement_clearinghouse.domain.custody_protocol import ZERO_ADDRESS
from agreement_clearinghouse.domain.enums import AssetKind, EventType, OfferStatus
from agreement_clearinghouse.domain.exceptions import (
    DuplicateOfferError,
    EscrowTransferFailedError,
    ExpiredOfferError,
    InvalidOfferFieldsError,
    NonceAlreadyUsedError,
    OfferNotFoundError,
    SignerMismatchError,
    UnauthorizedCallerError,
    ValidationError,
)
from agreement_clearinghouse.domain.models import AgreementEvent, Offer
from agreement_clearinghouse.domain.state_machine import OfferStateMachine, fire_transition
from agreement_clearinghouse.logging_config import bound_subject, get_logger
from agreement_clearinghouse.signing.encoding import compute_offer_id
from agreement_clearinghouse.signing.typed_data import build_signing_digest

if TYPE_CHECKING:
    from agreement_clearinghouse.custodians import CustodianRegistry
    from agreement_clearinghouse.domain.custody_protocol import CustodyToken, EscrowCustodian
    from agreement_clearinghouse.domain.signature_protocol import SignatureAuthority
    from agreement_clearinghouse.domain.store_protocol import AgreementStore
    from agreement_clearinghouse.schemas.offer import OfferTerms
    from agreement_clearinghouse.services.nonce_registry import NonceRegistry
    from agreement_clearinghouse.signing.typed_data import DomainParameters

logger = get_logger(__name__)


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


_LOG_EVENTS: dict[EventType, str] = {
    EventType.OFFER_CANCELLED: "offer.cancelled",
    EventType.OFFER_SETTLED: "offer.settled",
    EventType.OFFER_REJECTED: "offer.rejected",
    EventType.OFFER_CLEANED_UP: "offer.cleaned_up",
}


class OfferService:
    """Manages the offer lifecycle: create, cancel, accept, reject, clean up."""

    def __init__(
        self,
        store: AgreementStore,
        custodians: CustodianRegistry,
        authority: SignatureAuthority,
        domain: DomainParameters,
        nonces: NonceRegistry,
    ) -> None:
        self._store = store
        self._custodians = custodians
        self._authority = authority
        self._domain = domain
        self._nonces = nonces

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_offer(
        self,
        terms: OfferTerms,
        issuer_sig: bytes,
        now: int,
    ) -> AgreementEvent:
        """Validate, escrow and store a new issuer-signed offer."""
        self._check_fields(terms)
        if terms.expiry <= now:
            raise ExpiredOfferError(terms.expiry, now)

        offer_id = compute_offer_id(terms)
        if await self._store.get_offer(offer_id) is not None:
            raise DuplicateOfferError(_hex(offer_id))
        if await self._nonces.is_used(terms.issuer, terms.nonce):
            raise NonceAlreadyUsedError(terms.issuer, terms.nonce)

        self._require_signature(terms, issuer_sig, terms.issuer)
        custodian = None if terms.is_escrowless else self._custodians.resolve(terms.asset_kind)

        custody = None
        if custodian is not None:
            custody = await self._hold(custodian, terms)

        offer = Offer(
            id=offer_id,
            terms=terms,
            issuer_sig=bytes(issuer_sig),
            status=OfferStatus(fire_transition(OfferStateMachine, "NONE", "publish")),
            custody=custody,
            created_at=now,
        )
        event = AgreementEvent(
            event_type=EventType.OFFER_CREATED,
            subject_id=offer_id,
            actor=terms.issuer,
            payload={
                "offer_id": _hex(offer_id),
                "issuer": terms.issuer,
                "investor": terms.investor,
            },
            created_at=now,
        )

        try:
            async with self._store.transaction():
                await self._nonces.mark_used(terms.issuer, terms.nonce)
                await self._store.save_offer(offer)
                await self._store.record_event(event)
        except Exception:
            if custodian is not None and custody is not None:
                await self._return_custody(custodian, custody, terms.issuer)
            raise

        logger.info(
            "offer.created",
            offer_id=_hex(offer_id),
            issuer=terms.issuer,
            investor=terms.investor,
            escrowed=custody is not None,
        )
        return event

    # ------------------------------------------------------------------
    # Issuer / investor decisions
    # ------------------------------------------------------------------

    async def cancel_offer(self, offer_id: bytes, caller: str, now: int) -> AgreementEvent:
        """Issuer withdraws a live offer and takes the escrow back."""
        offer = await self._get_offer_or_raise(offer_id)
        new_status = fire_transition(OfferStateMachine, offer.status.value, "cancel")

        if caller != offer.issuer:
            raise UnauthorizedCallerError(caller, "cancel this offer")
        if now > offer.expiry:
            raise ExpiredOfferError(offer.expiry, now)

        return await self._close(
            offer,
            OfferStatus(new_status),
            recipient=offer.issuer,
            event_type=EventType.OFFER_CANCELLED,
            actor=caller,
            now=now,
        )

    async def accept_offer(
        self,
        offer_id: bytes,
        investor_sig: bytes,
        caller: str,
        now: int,
    ) -> AgreementEvent:
        """Settle an offer: the escrow goes to the investor.

        When the offer names a delegate, only the delegate may execute the
        acceptance; the investor's signature is still required.
        """
        offer = await self._get_offer_or_raise(offer_id)
        new_status = fire_transition(OfferStateMachine, offer.status.value, "accept")

        executor = offer.delegated_to if offer.is_delegated else offer.investor
        if caller != executor:
            raise UnauthorizedCallerError(caller, "accept this offer")
        if now > offer.expiry:
            raise ExpiredOfferError(offer.expiry, now)
        self._require_signature(offer.terms, investor_sig, offer.investor)

        offer.investor_sig = bytes(investor_sig)
        offer.settled = True
        payload = {
            "offer_id": _hex(offer.id),
            **offer.terms.to_payload(),
            "issuer_sig": _hex(offer.issuer_sig),
            "investor_sig": _hex(offer.investor_sig),
        }
        return await self._close(
            offer,
            OfferStatus(new_status),
            recipient=offer.investor,
            event_type=EventType.OFFER_SETTLED,
            actor=caller,
            now=now,
            payload=payload,
        )

    async def reject_offer(self, offer_id: bytes, caller: str, now: int) -> AgreementEvent:
        """Investor declines; the escrow goes back to the issuer.

        Rejection stays open after expiry so the investor can free the escrow.
        """
        offer = await self._get_offer_or_raise(offer_id)
        new_status = fire_transition(OfferStateMachine, offer.status.value, "reject")

        if caller != offer.investor:
            raise UnauthorizedCallerError(caller, "reject this offer")

        return await self._close(
            offer,
            OfferStatus(new_status),
            recipient=offer.issuer,
            event_type=EventType.OFFER_REJECTED,
            actor=caller,
            now=now,
        )

    async def clean_up_expired_offer(
        self,
        offer_id: bytes,
        caller: str,
        now: int,
    ) -> AgreementEvent:
        """Sweep an expired offer. Anyone may call; the escrow returns to the issuer."""
        offer = await self._get_offer_or_raise(offer_id)
        new_status = fire_transition(OfferStateMachine, offer.status.value, "clean_up")

        if now <= offer.expiry:
            raise ValidationError(
                f"Offer has not expired: expiry {offer.expiry}, now {now}",
                code="OFFER_NOT_EXPIRED",
            )

        return await self._close(
            offer,
            OfferStatus(new_status),
            recipient=offer.issuer,
            event_type=EventType.OFFER_CLEANED_UP,
            actor=caller,
            now=now,
        )

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_offer(self, offer_id: bytes) -> Offer:
        """Get an offer or raise."""
        return await self._get_offer_or_raise(offer_id)

    async def get_status(self, offer_id: bytes) -> dict:
        """Get offer status with allowed events."""
        offer = await self._get_offer_or_raise(offer_id)
        sm = OfferStateMachine(current_status=offer.status.value)
        return {
            "offer_id": _hex(offer.id),
            "status": offer.status.value,
            "settled": offer.settled,
            "allowed_events": sm.get_allowed_events(),
        }

    def signing_digest(self, terms: OfferTerms) -> bytes:
        return build_signing_digest(terms, self._domain)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_offer_or_raise(self, offer_id: bytes) -> Offer:
        offer = await self._store.get_offer(offer_id)
        if offer is None:
            raise OfferNotFoundError(_hex(offer_id))
        return offer

    @staticmethod
    def _check_fields(terms: OfferTerms) -> None:
        if terms.issuer == ZERO_ADDRESS:
            raise InvalidOfferFieldsError("Issuer must not be the zero address")
        if terms.investor == ZERO_ADDRESS:
            raise InvalidOfferFieldsError("Investor must not be the zero address")

        if terms.is_escrowless:
            if terms.token_id or terms.amount or terms.class_id or terms.nonce_id:
                raise InvalidOfferFieldsError(
                    "Escrowless offers must not carry token id, amount, class id or nonce id"
                )
            return
        if terms.amount == 0:
            raise InvalidOfferFieldsError("Escrowed offers must carry a non-zero amount")
        if terms.asset_kind == AssetKind.NON_FUNGIBLE and terms.amount != 1:
            raise InvalidOfferFieldsError("Non-fungible offers must carry amount 1")

    def _require_signature(self, terms: OfferTerms, signature: bytes, signer: str) -> None:
        """Raise a BadSignatureError unless ``signature`` is ``signer``'s over the digest."""
        digest = build_signing_digest(terms, self._domain)
        recovered = self._authority.recover(digest, bytes(signature))
        if recovered != signer:
            raise SignerMismatchError(signer, recovered)

    async def _hold(self, custodian: EscrowCustodian, terms: OfferTerms) -> CustodyToken:
        try:
            return await custodian.hold(terms.issuer, terms.asset)
        except Exception as exc:
            logger.warning(
                "escrow.hold_refused",
                issuer=terms.issuer,
                token=terms.token_address,
                error=str(exc),
            )
            raise EscrowTransferFailedError("hold", str(exc)) from exc

    async def _release(self, offer: Offer, recipient: str) -> None:
        custodian = self._custodians.resolve(offer.terms.asset_kind)
        try:
            await custodian.release(offer.custody, recipient)
        except Exception as exc:
            logger.warning(
                "escrow.release_refused",
                recipient=recipient,
                error=str(exc),
            )
            raise EscrowTransferFailedError("release", str(exc)) from exc

    async def _return_custody(
        self,
        custodian: EscrowCustodian,
        custody: CustodyToken,
        issuer: str,
    ) -> None:
        """Give a hold back to the issuer after the offer failed to persist."""
        try:
            await custodian.release(custody, issuer)
        except Exception:
            logger.exception("escrow.return_failed", custody_id=custody.custody_id, issuer=issuer)

    async def _close(
        self,
        offer: Offer,
        new_status: OfferStatus,
        *,
        recipient: str,
        event_type: EventType,
        actor: str,
        now: int,
        payload: dict | None = None,
    ) -> AgreementEvent:
        """Persist the terminal status and release the escrow to ``recipient``.

        The writes are staged first and the release is the last step before
        commit: a failed write never reaches the custodian, and a refused
        release rolls the writes back so the offer stays OFFERED.
        """
        old_status = offer.status
        custody = offer.custody
        event = AgreementEvent(
            event_type=event_type,
            subject_id=offer.id,
            actor=actor,
            payload=payload if payload is not None else {"offer_id": _hex(offer.id)},
            created_at=now,
        )

        with bound_subject(offer.id, event_type=event_type.value):
            async with self._store.transaction():
                closed = replace(offer, status=new_status, custody=None)
                await self._store.save_offer(closed)
                await self._store.record_event(event)
                if custody is not None:
                    await self._release(offer, recipient)

            logger.info(
                _LOG_EVENTS[event_type],
                old_status=old_status.value,
                new_status=new_status.value,
                actor=actor,
                released_to=recipient if custody is not None else None,
            )
        return event
