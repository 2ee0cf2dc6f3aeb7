"""Simulated escrow custodian.

Keeps balances in memory instead of moving real tokens, the same way the
payment layer can run in simulation mode without touching a chain. Used by
the simulation script, the wiring factory and the test suite.
"""

from __future__ import annotations

import uuid
from collections import defaultdict

from agreement_clearinghouse.domain.custody_protocol import AssetRef, CustodyToken
from agreement_clearinghouse.domain.enums import AssetKind
from agreement_clearinghouse.domain.exceptions import (
    CustodyNotFoundError,
    InsufficientBalanceError,
    InvalidOfferFieldsError,
    UnsupportedAssetKindError,
)
from agreement_clearinghouse.logging_config import get_logger

logger = get_logger(__name__)


class SimulatedCustodian:
    """In-memory custodian for a single asset kind."""

    def __init__(self, kind: AssetKind = AssetKind.FUNGIBLE) -> None:
        self.kind = kind
        self._balances: dict[tuple[str, tuple], int] = defaultdict(int)
        self._held: dict[str, CustodyToken] = {}

    # ------------------------------------------------------------------
    # EscrowCustodian protocol
    # ------------------------------------------------------------------

    async def hold(self, depositor: str, asset: AssetRef) -> CustodyToken:
        if asset.kind != self.kind:
            raise UnsupportedAssetKindError(asset.kind.value)
        if self.kind == AssetKind.NON_FUNGIBLE and asset.amount != 1:
            raise InvalidOfferFieldsError("Non-fungible escrow amount must be 1")

        available = self._balances[(depositor, asset.key)]
        if available < asset.amount:
            raise InsufficientBalanceError(depositor, asset.amount, available)

        self._balances[(depositor, asset.key)] -= asset.amount
        token = CustodyToken(custody_id=uuid.uuid4().hex, asset=asset, depositor=depositor)
        self._held[token.custody_id] = token
        logger.info(
            "custody.held",
            custody_id=token.custody_id,
            depositor=depositor,
            token=asset.token_address,
            amount=str(asset.amount),
            simulated=True,
        )
        return token

    async def release(self, token: CustodyToken, to: str) -> None:
        held = self._held.pop(token.custody_id, None)
        if held is None:
            raise CustodyNotFoundError(token.custody_id)
        self._balances[(to, held.asset.key)] += held.asset.amount
        logger.info(
            "custody.released",
            custody_id=token.custody_id,
            to=to,
            amount=str(held.asset.amount),
            simulated=True,
        )

    # ------------------------------------------------------------------
    # Simulation helpers
    # ------------------------------------------------------------------

    def credit(self, holder: str, asset: AssetRef, amount: int | None = None) -> None:
        """Mint ``amount`` (default: ``asset.amount``) of ``asset`` to ``holder``."""
        self._balances[(holder, asset.key)] += asset.amount if amount is None else amount

    def balance_of(self, holder: str, asset: AssetRef) -> int:
        return self._balances.get((holder, asset.key), 0)

    def escrowed(self, asset: AssetRef) -> int:
        """Total amount of ``asset`` currently held in custody."""
        return sum(t.asset.amount for t in self._held.values() if t.asset.key == asset.key)

    def is_held(self, custody_id: str) -> bool:
        return custody_id in self._held
