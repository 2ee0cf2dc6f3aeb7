#!/usr/bin/env python3
"""Agreement Clearinghouse — End-to-End Simulation.

Simulates four scenarios with IssuerBot and InvestorBot (the admin acts as guardian):

    Scenario 1: Happy Path
        - Issuer offers 100 units of a fungible token to the investor (nonce 1)
        - Investor signs the same digest and accepts -> ACCEPTED, escrow released

    Scenario 2: Delegated Acceptance
        - Issuer offers an NFT and delegates execution to a broker
        - Investor tries to accept directly -> refused
        - Broker accepts with the investor's signature -> ACCEPTED

    Scenario 3: Cancel, Reject and Clean Up
        - Issuer cancels one offer, investor rejects another
        - A third offer expires and is swept by a bystander

    Scenario 4: Dispute
        - Investor raises a dispute on a settled offer
        - Guardian resolves it; resolving again is refused

Usage:
    # In-memory store (default):
    uv run python simulation.py

    # SQLite in-memory through the SQL store:
    uv run python simulation.py --sqlite

    # Run a specific scenario:
    uv run python simulation.py --sqlite --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from agreement_clearinghouse.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from agreement_clearinghouse.config import Settings  # noqa: E402
from agreement_clearinghouse.custodians import CustodianRegistry  # noqa: E402
from agreement_clearinghouse.domain import AgreementError, AssetKind, DisputeStatus  # noqa: E402
from agreement_clearinghouse.main import create_manager  # noqa: E402
from agreement_clearinghouse.schemas import OfferTerms  # noqa: E402
from agreement_clearinghouse.services import AgreementManager  # noqa: E402
from agreement_clearinghouse.signing import LocalSigner  # noqa: E402

TOKEN = "0x00000000000000000000000000000000000000A1"
NFT = "0x00000000000000000000000000000000000000B2"
START_TIME = 1_700_000_000

# Module-level state
_use_sqlite = False


class SimulationClock:
    """Manually advanced unix clock, so expiry can be reached instantly."""

    def __init__(self, start: int = START_TIME) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@dataclass
class World:
    """Everything a scenario needs: the manager, its custodians and its clock."""

    manager: AgreementManager
    custodians: CustodianRegistry
    clock: SimulationClock
    admin: LocalSigner


async def build_world() -> World:
    """Create a fresh manager with its own store and simulated custodians."""
    admin = LocalSigner.create()
    settings = Settings(
        app_log_level="INFO",
        store_backend="sql" if _use_sqlite else "memory",
        database_url="sqlite+aiosqlite:///:memory:",
        admin_address=admin.address,
    )
    custodians = CustodianRegistry.simulated()
    clock = SimulationClock()
    manager = await create_manager(settings, custodians=custodians, clock=clock)
    return World(manager=manager, custodians=custodians, clock=clock, admin=admin)


async def shutdown_world() -> None:
    """Close database connections."""
    if _use_sqlite:
        from agreement_clearinghouse.infrastructure.database.engine import close_db

        await close_db()


# ---------------------------------------------------------------------------
# Bot Agents
# ---------------------------------------------------------------------------
@dataclass
class IssuerBot:
    """Simulated issuer that signs and records offers."""

    signer: LocalSigner = field(default_factory=LocalSigner.create)

    @property
    def address(self) -> str:
        return self.signer.address

    async def make_offer(self, world: World, investor: str, **fields: Any) -> bytes:
        """Sign and record an offer. Returns the offer id."""
        nonce = await world.manager.next_nonce(self.address)
        terms = OfferTerms(
            issuer=self.address,
            investor=investor,
            expiry=fields.pop("expiry", world.clock.now + 1000),
            nonce=fields.pop("nonce", nonce),
            **fields,
        )
        signature = self.signer.sign_offer(terms, world.manager.domain)
        offer_id = await world.manager.create_offer(terms, signature)
        logger.info(
            "🔵 ISSUER: Offer created",
            offer_id="0x" + offer_id.hex(),
            amount=terms.amount,
            nonce=terms.nonce,
        )
        return offer_id

    async def cancel(self, world: World, offer_id: bytes) -> None:
        await world.manager.cancel_offer(offer_id, caller=self.address)
        logger.info("🔵 ISSUER: Offer cancelled", offer_id="0x" + offer_id.hex())


@dataclass
class InvestorBot:
    """Simulated investor that countersigns or declines offers."""

    signer: LocalSigner = field(default_factory=LocalSigner.create)

    @property
    def address(self) -> str:
        return self.signer.address

    async def countersign(self, world: World, offer_id: bytes) -> bytes:
        """Sign the offer's digest, the same one the issuer signed."""
        offer = await world.manager.get_offer(offer_id)
        return self.signer.sign_offer(offer.terms, world.manager.domain)

    async def accept(self, world: World, offer_id: bytes, caller: str | None = None) -> None:
        signature = await self.countersign(world, offer_id)
        await world.manager.accept_offer(offer_id, signature, caller=caller or self.address)
        logger.info("🟢 INVESTOR: Offer accepted", offer_id="0x" + offer_id.hex())

    async def reject(self, world: World, offer_id: bytes) -> None:
        await world.manager.reject_offer(offer_id, caller=self.address)
        logger.info("🟢 INVESTOR: Offer rejected", offer_id="0x" + offer_id.hex())


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


def print_refusal(exc: AgreementError) -> None:
    print(f"  ❌ Refused [{exc.code}]: {exc.message}")


def print_balances(world: World, terms: OfferTerms, *holders: tuple[str, str]) -> None:
    custodian = world.custodians.resolve(terms.asset_kind)
    for label, address in holders:
        print(f"  {label}: {custodian.balance_of(address, terms.asset)}")
    print(f"  In escrow: {custodian.escrowed(terms.asset)}")


async def print_audit_trail(world: World, subject_id: bytes) -> None:
    """Print the recorded events for an offer or dispute."""
    events = await world.manager.get_events(subject_id)
    print("\n  📜 Audit Trail:")
    for i, evt in enumerate(events, 1):
        print(f"    {i}. [{evt.event_type}] at {evt.created_at} (by {evt.actor})")
    print()


# ===========================================================================
# Scenario 1: Happy Path
# ===========================================================================
async def scenario_1_happy_path() -> None:
    """Issuer escrows 100 units, investor accepts."""
    banner("SCENARIO 1: Happy Path — 100 units, nonce 1")

    world = await build_world()
    issuer, investor = IssuerBot(), InvestorBot()
    fungible = world.custodians.resolve(AssetKind.FUNGIBLE)

    section("Step 1: Issuer signs and creates the offer")
    probe = OfferTerms(issuer=issuer.address, investor=investor.address,
                       token_address=TOKEN, amount=100, expiry=0, nonce=0)
    fungible.credit(issuer.address, probe.asset)
    offer_id = await issuer.make_offer(world, investor.address, token_address=TOKEN,
                                       amount=100, nonce=1)
    print(f"  Nonce 1 used: {await world.manager.used_nonces(issuer.address, 1)}")
    print_balances(world, probe, ("Issuer", issuer.address), ("Investor", investor.address))

    section("Step 2: Investor signs the same digest and accepts")
    await investor.accept(world, offer_id)
    print(f"  Settled: {await world.manager.is_settled(offer_id)}")
    print_balances(world, probe, ("Issuer", issuer.address), ("Investor", investor.address))

    section("Step 3: Issuer tries to cancel the settled offer")
    try:
        await issuer.cancel(world, offer_id)
    except AgreementError as exc:
        print_refusal(exc)

    await print_audit_trail(world, offer_id)


# ===========================================================================
# Scenario 2: Delegated Acceptance
# ===========================================================================
async def scenario_2_delegated_acceptance() -> None:
    """Only the named broker may execute the acceptance."""
    banner("SCENARIO 2: Delegated Acceptance — NFT via broker")

    world = await build_world()
    issuer, investor, broker = IssuerBot(), InvestorBot(), LocalSigner.create()
    probe = OfferTerms(issuer=issuer.address, investor=investor.address, token_address=NFT,
                       token_id=7, amount=1, asset_kind=AssetKind.NON_FUNGIBLE,
                       expiry=0, nonce=0)
    world.custodians.resolve(AssetKind.NON_FUNGIBLE).credit(issuer.address, probe.asset)

    section("Step 1: Issuer offers NFT #7, delegated to the broker")
    offer_id = await issuer.make_offer(
        world,
        investor.address,
        token_address=NFT,
        token_id=7,
        amount=1,
        asset_kind=AssetKind.NON_FUNGIBLE,
        delegated_to=broker.address,
    )

    section("Step 2: Investor tries to accept directly")
    try:
        await investor.accept(world, offer_id)
    except AgreementError as exc:
        print_refusal(exc)

    section("Step 3: Broker executes with the investor's signature")
    await investor.accept(world, offer_id, caller=broker.address)
    print(f"  Settled: {await world.manager.is_settled(offer_id)}")
    print_balances(world, probe, ("Issuer", issuer.address), ("Investor", investor.address))

    await print_audit_trail(world, offer_id)


# ===========================================================================
# Scenario 3: Cancel, Reject and Clean Up
# ===========================================================================
async def scenario_3_cancel_reject_cleanup() -> None:
    """Every non-settling exit returns the escrow to the issuer."""
    banner("SCENARIO 3: Cancel, Reject and Clean Up")

    world = await build_world()
    issuer, investor = IssuerBot(), InvestorBot()
    probe = OfferTerms(issuer=issuer.address, investor=investor.address,
                       token_address=TOKEN, amount=30, expiry=0, nonce=0)
    world.custodians.resolve(AssetKind.FUNGIBLE).credit(issuer.address, probe.asset, 90)

    section("Step 1: Three offers of 30 units")
    cancelled = await issuer.make_offer(world, investor.address, token_address=TOKEN, amount=30)
    rejected = await issuer.make_offer(world, investor.address, token_address=TOKEN, amount=30)
    expiring = await issuer.make_offer(world, investor.address, token_address=TOKEN, amount=30,
                                       expiry=world.clock.now + 10)
    print_balances(world, probe, ("Issuer", issuer.address))

    section("Step 2: Issuer cancels, investor rejects")
    await issuer.cancel(world, cancelled)
    await investor.reject(world, rejected)
    print_balances(world, probe, ("Issuer", issuer.address))

    section("Step 3: Time passes; a bystander sweeps the expired offer")
    world.clock.advance(60)
    bystander = LocalSigner.create()
    try:
        await investor.accept(world, expiring)
    except AgreementError as exc:
        print_refusal(exc)
    await world.manager.clean_up_expired_offer(expiring, caller=bystander.address)
    print_balances(world, probe, ("Issuer", issuer.address))
    print(f"  Next suggested nonce: {await world.manager.next_nonce(issuer.address)}")

    await print_audit_trail(world, expiring)


# ===========================================================================
# Scenario 4: Dispute
# ===========================================================================
async def scenario_4_dispute() -> None:
    """Investor disputes a settled offer; a guardian resolves it once."""
    banner("SCENARIO 4: Dispute — raised, resolved, resolved again")

    world = await build_world()
    issuer, investor = IssuerBot(), InvestorBot()

    section("Step 1: Escrowless offer is settled")
    offer_id = await issuer.make_offer(world, investor.address,
                                       document_uri="ipfs://agreement")
    await investor.accept(world, offer_id)

    section("Step 2: Investor raises a dispute")
    dispute_id = await world.manager.raise_dispute(investor.address, offer_id, "ipfs://x")
    dispute = await world.manager.get_dispute(dispute_id)
    print(f"  Dispute status: {dispute.status}")

    section("Step 3: Guardian resolves the dispute")
    await world.manager.set_dispute_status(dispute_id, DisputeStatus.RESOLVED,
                                           caller=world.admin.address)
    dispute = await world.manager.get_dispute(dispute_id)
    print(f"  Dispute status: {dispute.status}")

    section("Step 4: Guardian tries to resolve it again")
    try:
        await world.manager.set_dispute_status(dispute_id, DisputeStatus.RESOLVED,
                                               caller=world.admin.address)
    except AgreementError as exc:
        print_refusal(exc)

    await print_audit_trail(world, dispute_id)


# ===========================================================================
# Runner
# ===========================================================================
SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_delegated_acceptance,
    3: scenario_3_cancel_reject_cleanup,
    4: scenario_4_dispute,
}


async def run(scenario: int = 0, use_sqlite: bool = False) -> None:
    """Run one scenario, or all of them when ``scenario`` is 0."""
    global _use_sqlite
    _use_sqlite = use_sqlite

    if scenario and scenario not in SCENARIOS:
        print(f"Unknown scenario {scenario}. Available: {', '.join(map(str, SCENARIOS))}")
        return

    print("\n" + "🚀" * 35)
    print("  AGREEMENT CLEARINGHOUSE — SIMULATION")
    print(f"  Store: {'SQLite (in-memory)' if use_sqlite else 'in-memory dict'}")
    print("🚀" * 35 + "\n")

    try:
        for num, run_scenario in SCENARIOS.items():
            if scenario in (0, num):
                await run_scenario()
                # each world gets its own database
                await shutdown_world()
    finally:
        await shutdown_world()

    print("\n" + "=" * 70)
    print("  ✅ ALL SCENARIOS COMPLETED SUCCESSFULLY")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Agreement Clearinghouse Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Use the SQL store on SQLite in-memory instead of the dict store.",
    )
    args = parser.parse_args()

    asyncio.run(run(scenario=args.scenario, use_sqlite=args.sqlite))
