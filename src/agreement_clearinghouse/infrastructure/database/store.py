"""SQLAlchemy-backed AgreementStore.

Each ``transaction()`` opens its own session and commits it on success or
rolls it back on error. Calls made inside the transaction (from the same
asyncio task) join that session through a context variable; calls made
anywhere else open a short-lived read session, so readers only ever see
committed state.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

from agreement_clearinghouse.infrastructure.database.repositories import (
    DisputeRepository,
    EventRepository,
    NonceRepository,
    OfferRepository,
)
from agreement_clearinghouse.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from agreement_clearinghouse.domain.models import AgreementEvent, Dispute, Offer

logger = get_logger(__name__)


class SqlAgreementStore:
    """AgreementStore over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._active: ContextVar[AsyncSession | None] = ContextVar(
            f"sql_agreement_store_{id(self)}", default=None
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._session_factory() as session:
            token = self._active.set(session)
            try:
                yield
                await session.commit()
            except BaseException:
                await session.rollback()
                logger.debug("store.transaction_rolled_back")
                raise
            finally:
                self._active.reset(token)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        active = self._active.get()
        if active is not None:
            yield active
            return
        async with self._session_factory() as session:
            yield session

    # --- Offers ---

    async def get_offer(self, offer_id: bytes) -> Offer | None:
        async with self._session() as session:
            return await OfferRepository(session).get_by_id(offer_id)

    async def save_offer(self, offer: Offer) -> None:
        async with self._session() as session:
            await OfferRepository(session).save(offer)

    # --- Nonces ---

    async def is_nonce_used(self, issuer: str, nonce: int) -> bool:
        async with self._session() as session:
            return await NonceRepository(session).is_used(issuer, nonce)

    async def mark_nonce_used(self, issuer: str, nonce: int) -> None:
        async with self._session() as session:
            await NonceRepository(session).mark_used(issuer, nonce)

    async def get_next_nonce(self, issuer: str) -> int:
        async with self._session() as session:
            return await NonceRepository(session).next_nonce(issuer)

    # --- Disputes ---

    async def get_dispute(self, dispute_id: bytes) -> Dispute | None:
        async with self._session() as session:
            return await DisputeRepository(session).get_by_id(dispute_id)

    async def save_dispute(self, dispute: Dispute) -> None:
        async with self._session() as session:
            await DisputeRepository(session).save(dispute)

    # --- Events ---

    async def record_event(self, event: AgreementEvent) -> None:
        async with self._session() as session:
            await EventRepository(session).record(event)

    async def get_events(self, subject_id: bytes) -> list[AgreementEvent]:
        async with self._session() as session:
            return await EventRepository(session).get_by_subject(subject_id)
