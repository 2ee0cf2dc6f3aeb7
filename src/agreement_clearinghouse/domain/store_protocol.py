"""Agreement Store Protocol.

The ledger, nonce registry and dispute registry persist through this
interface. Implementations:
    - infrastructure/memory_store.py        (dict-backed, for tests and simulations)
    - infrastructure/database/store.py      (SQLAlchemy async)

Writes issued inside ``transaction()`` become visible together when the block
exits without error, and are discarded otherwise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from agreement_clearinghouse.domain.models import AgreementEvent, Dispute, Offer


@runtime_checkable
class AgreementStore(Protocol):
    """Keyed storage for offers, nonces, disputes and the event log."""

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group writes into one all-or-nothing unit."""
        ...

    # --- Offers ---
    async def get_offer(self, offer_id: bytes) -> Offer | None: ...

    async def save_offer(self, offer: Offer) -> None: ...

    # --- Nonces ---
    async def is_nonce_used(self, issuer: str, nonce: int) -> bool: ...

    async def mark_nonce_used(self, issuer: str, nonce: int) -> None:
        """Record ``nonce`` as consumed and advance the issuer's advisory counter."""
        ...

    async def get_next_nonce(self, issuer: str) -> int: ...

    # --- Disputes ---
    async def get_dispute(self, dispute_id: bytes) -> Dispute | None: ...

    async def save_dispute(self, dispute: Dispute) -> None: ...

    # --- Events ---
    async def record_event(self, event: AgreementEvent) -> None:
        """Append an event. This is the only write allowed on the log."""
        ...

    async def get_events(self, subject_id: bytes) -> list[AgreementEvent]:
        """Return events for a subject in the order they were recorded."""
        ...
