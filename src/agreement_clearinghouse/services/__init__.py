"""Application services — use case orchestration."""

from agreement_clearinghouse.services.agreement_manager import AgreementManager, system_clock
from agreement_clearinghouse.services.dispute_service import DisputeService
from agreement_clearinghouse.services.nonce_registry import NonceRegistry
from agreement_clearinghouse.services.offer_service import OfferService

__all__ = ["AgreementManager", "DisputeService", "NonceRegistry", "OfferService", "system_clock"]
