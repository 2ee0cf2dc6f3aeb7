"""Escrow Custodian Protocol.

Defines the interface every escrow custodian must implement. The ledger never
inspects asset internals: it only sequences hold/release calls around state
transitions. Concrete custodians are resolved per AssetKind through the
CustodianRegistry in custodians/__init__.py.

The domain layer has ZERO imports from any token or wallet library.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from agreement_clearinghouse.domain.enums import AssetKind

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = b"\x00" * 32


@dataclass(frozen=True)
class AssetRef:
    """Reference to the asset and quantity an offer escrows.

    Attributes:
        token_address: Token contract address (ZERO_ADDRESS for escrowless offers).
        kind: Asset family, used to pick the custodian.
        partition: ERC-1400 partition (zero for other kinds).
        token_id: ERC-721/1155 id (zero for fungibles).
        amount: Units to escrow (1 for non-fungibles).
        class_id: ERC-3475 class (zero for other kinds).
        nonce_id: ERC-3475 nonce (zero for other kinds).
    """

    token_address: str
    kind: AssetKind = AssetKind.FUNGIBLE
    partition: bytes = ZERO_BYTES32
    token_id: int = 0
    amount: int = 0
    class_id: int = 0
    nonce_id: int = 0

    @property
    def is_null(self) -> bool:
        """True for escrowless offers."""
        return self.token_address == ZERO_ADDRESS

    @property
    def key(self) -> tuple[str, bytes, int, int, int]:
        """Identity of the asset, independent of the amount."""
        return (self.token_address, self.partition, self.token_id, self.class_id, self.nonce_id)


@dataclass(frozen=True)
class CustodyToken:
    """Receipt returned by a custodian for a held asset."""

    custody_id: str
    asset: AssetRef
    depositor: str


@runtime_checkable
class EscrowCustodian(Protocol):
    """Protocol that all escrow custodians must satisfy.

    Any exception raised by either method is fatal to the enclosing ledger
    operation, which is rolled back.
    """

    async def hold(self, depositor: str, asset: AssetRef) -> CustodyToken:
        """Pull ``asset`` from ``depositor`` into custody."""
        ...

    async def release(self, token: CustodyToken, to: str) -> None:
        """Release a held custody to ``to``. Must succeed at most once per token."""
        ...
