"""Shared test fixtures for the Agreement Clearinghouse test suite.

Provides:
    - Deterministic signers for issuer, investor, delegate and admin
    - A manually advanced clock
    - Factory functions for offer terms and signed offers
    - A manager wired to an in-memory store and simulated custodians
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from agreement_clearinghouse.custodians import CustodianRegistry
from agreement_clearinghouse.domain.enums import AssetKind
from agreement_clearinghouse.infrastructure.memory_store import InMemoryAgreementStore
from agreement_clearinghouse.schemas.offer import OfferTerms
from agreement_clearinghouse.services.agreement_manager import AgreementManager
from agreement_clearinghouse.signing.authority import EcdsaSignatureAuthority
from agreement_clearinghouse.signing.signer import LocalSigner
from agreement_clearinghouse.signing.typed_data import DomainParameters

T0 = 1_700_000_000
TOKEN = "0x00000000000000000000000000000000000000A1"
NFT = "0x00000000000000000000000000000000000000B2"


class FakeClock:
    """Unix clock that only moves when told to."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------


@pytest.fixture
def issuer() -> LocalSigner:
    return LocalSigner.from_key("0x" + "11" * 32)


@pytest.fixture
def investor() -> LocalSigner:
    return LocalSigner.from_key("0x" + "22" * 32)


@pytest.fixture
def delegate() -> LocalSigner:
    return LocalSigner.from_key("0x" + "33" * 32)


@pytest.fixture
def admin() -> LocalSigner:
    return LocalSigner.from_key("0x" + "44" * 32)


@pytest.fixture
def outsider() -> LocalSigner:
    return LocalSigner.from_key("0x" + "55" * 32)


# ---------------------------------------------------------------------------
# Engine collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def domain() -> DomainParameters:
    return DomainParameters(
        chain_id=1,
        verifying_contract="0x0000000000000000000000000000000000000001",
    )


@pytest.fixture
def custodians() -> CustodianRegistry:
    return CustodianRegistry.simulated()


@pytest.fixture
def store() -> InMemoryAgreementStore:
    return InMemoryAgreementStore()


@pytest.fixture
def manager(
    store: InMemoryAgreementStore,
    custodians: CustodianRegistry,
    domain: DomainParameters,
    clock: FakeClock,
    admin: LocalSigner,
) -> AgreementManager:
    return AgreementManager(
        store,
        custodians,
        EcdsaSignatureAuthority(),
        domain,
        admin=admin.address,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Offer factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_terms(
    issuer: LocalSigner,
    investor: LocalSigner,
    clock: FakeClock,
) -> Callable[..., OfferTerms]:
    """Return a factory for 100-unit fungible offer terms (nonce 1, expiry now+1000)."""

    def _make(**overrides: Any) -> OfferTerms:
        fields: dict[str, Any] = {
            "issuer": issuer.address,
            "investor": investor.address,
            "token_address": TOKEN,
            "amount": 100,
            "document_hash": "0x" + "ab" * 32,
            "document_uri": "ipfs://agreement",
            "expiry": clock.now + 1000,
            "nonce": 1,
        }
        fields.update(overrides)
        return OfferTerms(**fields)

    return _make


@pytest.fixture
def fund(custodians: CustodianRegistry) -> Callable[..., None]:
    """Credit the issuer of ``terms`` with the escrow amount (or ``amount``)."""

    def _fund(terms: OfferTerms, amount: int | None = None) -> None:
        custodian = custodians.resolve(terms.asset_kind)
        custodian.credit(terms.issuer, terms.asset, amount)

    return _fund


@pytest.fixture
def nft_terms(make_terms: Callable[..., OfferTerms]) -> OfferTerms:
    return make_terms(
        token_address=NFT,
        token_id=7,
        amount=1,
        asset_kind=AssetKind.NON_FUNGIBLE,
    )
