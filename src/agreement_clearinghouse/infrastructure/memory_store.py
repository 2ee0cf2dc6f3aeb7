"""Dict-backed AgreementStore.

Each instance owns its maps, so several managers can run side by side in one
process without sharing state. A transaction snapshots every map and puts the
snapshot back if the block raises.
"""

from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agreement_clearinghouse.domain.models import AgreementEvent, Dispute, Offer


class InMemoryAgreementStore:
    """AgreementStore over plain dictionaries."""

    def __init__(self) -> None:
        self._offers: dict[bytes, Offer] = {}
        self._used_nonces: set[tuple[str, int]] = set()
        self._next_nonce: dict[str, int] = {}
        self._disputes: dict[bytes, Dispute] = {}
        self._events: list[AgreementEvent] = []

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = (
            copy.deepcopy(self._offers),
            set(self._used_nonces),
            dict(self._next_nonce),
            copy.deepcopy(self._disputes),
            list(self._events),
        )
        try:
            yield
        except BaseException:
            (
                self._offers,
                self._used_nonces,
                self._next_nonce,
                self._disputes,
                self._events,
            ) = snapshot
            raise

    # --- Offers ---

    async def get_offer(self, offer_id: bytes) -> Offer | None:
        offer = self._offers.get(offer_id)
        return replace(offer) if offer is not None else None

    async def save_offer(self, offer: Offer) -> None:
        self._offers[offer.id] = replace(offer)

    # --- Nonces ---

    async def is_nonce_used(self, issuer: str, nonce: int) -> bool:
        return (issuer, nonce) in self._used_nonces

    async def mark_nonce_used(self, issuer: str, nonce: int) -> None:
        self._used_nonces.add((issuer, nonce))
        if nonce >= self._next_nonce.get(issuer, 0):
            self._next_nonce[issuer] = nonce + 1

    async def get_next_nonce(self, issuer: str) -> int:
        return self._next_nonce.get(issuer, 0)

    # --- Disputes ---

    async def get_dispute(self, dispute_id: bytes) -> Dispute | None:
        dispute = self._disputes.get(dispute_id)
        return replace(dispute) if dispute is not None else None

    async def save_dispute(self, dispute: Dispute) -> None:
        self._disputes[dispute.id] = replace(dispute)

    # --- Events ---

    async def record_event(self, event: AgreementEvent) -> None:
        self._events.append(event)

    async def get_events(self, subject_id: bytes) -> list[AgreementEvent]:
        return [e for e in self._events if e.subject_id == subject_id]
