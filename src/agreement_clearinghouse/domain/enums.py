"""Domain enumerations for the Agreement Clearinghouse.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no pydantic imports).
"""

import enum


class OfferStatus(enum.StrEnum):
    """Lifecycle states of an offer.

    State transitions are enforced by the OfferStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    NONE = "NONE"
    OFFERED = "OFFERED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class DisputeStatus(enum.StrEnum):
    """Lifecycle states of a dispute record."""

    NONE = "NONE"
    RAISED = "RAISED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class AssetKind(enum.StrEnum):
    """Asset families an escrow custodian can be registered for."""

    FUNGIBLE = "erc20"
    NON_FUNGIBLE = "erc721"
    MULTI_TOKEN = "erc1155"
    PARTITIONED = "erc1400"
    BOND = "erc3475"


class Role(enum.StrEnum):
    """Privileged roles on an AgreementManager."""

    ADMIN = "ADMIN"
    GUARDIAN = "GUARDIAN"
    PAUSER = "PAUSER"


class EventType(enum.StrEnum):
    """Types of notifications recorded in the agreement event log.

    Every completed transition produces exactly one event.
    """

    # Offer lifecycle
    OFFER_CREATED = "OFFER_CREATED"
    OFFER_CANCELLED = "OFFER_CANCELLED"
    OFFER_SETTLED = "OFFER_SETTLED"
    OFFER_REJECTED = "OFFER_REJECTED"
    OFFER_CLEANED_UP = "OFFER_CLEANED_UP"

    # Disputes
    DISPUTE_RAISED = "DISPUTE_RAISED"
    DISPUTE_STATUS_CHANGED = "DISPUTE_STATUS_CHANGED"

    # Administration
    PAUSED = "PAUSED"
    UNPAUSED = "UNPAUSED"
    ROLE_GRANTED = "ROLE_GRANTED"
    ROLE_REVOKED = "ROLE_REVOKED"
