"""Escrow custodian implementations and registry.

One custodian per asset kind:
    - FUNGIBLE      (ERC-20-like units)
    - NON_FUNGIBLE  (ERC-721-like single items)
    - MULTI_TOKEN   (ERC-1155-like id + amount)
    - PARTITIONED   (ERC-1400-like partitioned units)
    - BOND          (ERC-3475-like class/nonce units)

The CustodianRegistry resolves the custodian for an offer's AssetKind, so the
ledger never branches on asset internals.
"""

from __future__ import annotations

from agreement_clearinghouse.custodians.simulated import SimulatedCustodian
from agreement_clearinghouse.domain.custody_protocol import EscrowCustodian
from agreement_clearinghouse.domain.enums import AssetKind
from agreement_clearinghouse.domain.exceptions import UnsupportedAssetKindError


class CustodianRegistry:
    """Maps asset kinds to escrow custodians.

    Usage:
        registry = CustodianRegistry.simulated()
        custodian = registry.resolve(AssetKind.FUNGIBLE)
        token = await custodian.hold(issuer, asset)
    """

    def __init__(self, custodians: dict[AssetKind, EscrowCustodian] | None = None) -> None:
        self._registry: dict[AssetKind, EscrowCustodian] = dict(custodians or {})

    @classmethod
    def simulated(cls) -> CustodianRegistry:
        """Registry with one SimulatedCustodian per asset kind."""
        return cls({kind: SimulatedCustodian(kind) for kind in AssetKind})

    def register(self, kind: AssetKind, custodian: EscrowCustodian) -> None:
        if not isinstance(custodian, EscrowCustodian):
            raise TypeError(f"{type(custodian).__name__} does not implement EscrowCustodian")
        self._registry[kind] = custodian

    def resolve(self, kind: AssetKind) -> EscrowCustodian:
        """Return the custodian for ``kind``.

        Raises:
            UnsupportedAssetKindError: If no custodian is registered for it.
        """
        custodian = self._registry.get(kind)
        if custodian is None:
            raise UnsupportedAssetKindError(kind.value)
        return custodian

    def get_supported_kinds(self) -> list[AssetKind]:
        """Return the asset kinds that have a custodian."""
        return list(self._registry.keys())


__all__ = [
    "CustodianRegistry",
    "EscrowCustodian",
    "SimulatedCustodian",
]
