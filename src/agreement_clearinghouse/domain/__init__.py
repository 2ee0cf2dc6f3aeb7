"""Domain layer — pure business logic with zero infrastructure dependencies."""

from agreement_clearinghouse.domain.custody_protocol import (
    ZERO_ADDRESS,
    ZERO_BYTES32,
    AssetRef,
    CustodyToken,
    EscrowCustodian,
)
from agreement_clearinghouse.domain.enums import (
    AssetKind,
    DisputeStatus,
    EventType,
    OfferStatus,
    Role,
)
from agreement_clearinghouse.domain.exceptions import (
    AgreementError,
    AuthorizationError,
    ConflictError,
    DependencyError,
    InvalidStateTransitionError,
    ValidationError,
)
from agreement_clearinghouse.domain.models import AgreementEvent, Dispute, Offer
from agreement_clearinghouse.domain.roles import AccessControl
from agreement_clearinghouse.domain.signature_protocol import SignatureAuthority
from agreement_clearinghouse.domain.state_machine import (
    DisputeStateMachine,
    OfferStateMachine,
    fire_transition,
)
from agreement_clearinghouse.domain.store_protocol import AgreementStore

__all__ = [
    "ZERO_ADDRESS",
    "ZERO_BYTES32",
    "AccessControl",
    "AgreementError",
    "AgreementEvent",
    "AgreementStore",
    "AssetKind",
    "AssetRef",
    "AuthorizationError",
    "ConflictError",
    "CustodyToken",
    "DependencyError",
    "Dispute",
    "DisputeStateMachine",
    "DisputeStatus",
    "EscrowCustodian",
    "EventType",
    "InvalidStateTransitionError",
    "Offer",
    "OfferStateMachine",
    "OfferStatus",
    "Role",
    "SignatureAuthority",
    "ValidationError",
    "fire_transition",
]
