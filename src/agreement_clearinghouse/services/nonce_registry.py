"""Nonce Registry — per-issuer replay protection.

The registry only enforces non-reuse. ``next_nonce`` is advisory: issuers may
skip values, and the counter never moves backwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agreement_clearinghouse.domain.exceptions import NonceAlreadyUsedError

if TYPE_CHECKING:
    from agreement_clearinghouse.domain.store_protocol import AgreementStore


class NonceRegistry:
    """Consumed-nonce bookkeeping on top of an AgreementStore."""

    def __init__(self, store: AgreementStore) -> None:
        self._store = store

    async def is_used(self, issuer: str, nonce: int) -> bool:
        return await self._store.is_nonce_used(issuer, nonce)

    async def next_nonce(self, issuer: str) -> int:
        """Suggested nonce for the issuer's next offer."""
        return await self._store.get_next_nonce(issuer)

    async def current_nonce(self, issuer: str) -> int:
        return await self.next_nonce(issuer)

    async def mark_used(self, issuer: str, nonce: int) -> None:
        """Consume ``nonce`` for ``issuer``.

        Raises:
            NonceAlreadyUsedError: If the pair was consumed before.
        """
        if await self._store.is_nonce_used(issuer, nonce):
            raise NonceAlreadyUsedError(issuer, nonce)
        await self._store.mark_nonce_used(issuer, nonce)
