"""Wiring entry point for the Agreement Clearinghouse.

Lifecycle:
    1. Startup: Initialize logging and the configured store (creating tables
       on SQLite or in development).
    2. Running: Callers drive the returned AgreementManager.
    3. Shutdown: ``await close_db()`` when the SQL backend was used.

Usage:
    manager = await create_manager()
    offer_id = await manager.create_offer(terms, issuer_sig)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agreement_clearinghouse.config import get_settings
from agreement_clearinghouse.custodians import CustodianRegistry
from agreement_clearinghouse.logging_config import get_logger, setup_logging
from agreement_clearinghouse.services.agreement_manager import AgreementManager
from agreement_clearinghouse.signing.authority import EcdsaSignatureAuthority

if TYPE_CHECKING:
    from collections.abc import Callable

    from agreement_clearinghouse.config import Settings
    from agreement_clearinghouse.domain.store_protocol import AgreementStore


async def create_store(settings: Settings) -> AgreementStore:
    """Build the store selected by ``settings.store_backend``."""
    if settings.store_backend == "sql":
        from agreement_clearinghouse.infrastructure.database.engine import init_db
        from agreement_clearinghouse.infrastructure.database.store import SqlAgreementStore

        session_factory = await init_db(settings)
        return SqlAgreementStore(session_factory)

    from agreement_clearinghouse.infrastructure.memory_store import InMemoryAgreementStore

    return InMemoryAgreementStore()


async def create_manager(
    settings: Settings | None = None,
    *,
    store: AgreementStore | None = None,
    custodians: CustodianRegistry | None = None,
    clock: Callable[[], int] | None = None,
) -> AgreementManager:
    """Manager factory — configures logging and wires the collaborators."""
    settings = settings or get_settings()

    # 1. Setup structured logging
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=settings.app_json_logs or not settings.is_development,
    )
    logger = get_logger(__name__)

    # 2. Store and custodians
    if store is None:
        store = await create_store(settings)
    if custodians is None:
        custodians = CustodianRegistry.simulated()

    manager = AgreementManager(
        store,
        custodians,
        EcdsaSignatureAuthority(),
        settings.domain_parameters,
        admin=settings.admin_address,
        clock=clock,
    )
    logger.info(
        "manager.started",
        env=settings.app_env,
        store=type(store).__name__,
        chain_id=settings.chain_id,
        verifying_contract=settings.verifying_contract,
        asset_kinds=[kind.value for kind in custodians.get_supported_kinds()],
    )
    return manager
