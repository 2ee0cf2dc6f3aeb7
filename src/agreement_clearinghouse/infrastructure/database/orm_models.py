"""SQLAlchemy 2.0 ORM models for the Agreement Clearinghouse.

Five tables:
    1. offers            — Issuer-signed offers and their lifecycle status.
    2. used_nonces       — Consumed (issuer, nonce) pairs. Rows are never deleted.
    3. nonce_counters    — Advisory next-nonce per issuer.
    4. disputes          — Dispute records, optionally linked to an offer.
    5. agreement_events  — Append-only log of every completed transition.

Design decisions:
    - 32-byte ids and hashes stored as 0x-prefixed hex (66 chars).
    - uint256 values stored as decimal strings (78 chars); no database integer
      type covers the full range.
    - Times are unix seconds, matching the offer expiry domain.
    - CHECK constraints on status columns reject unknown enum values at DB level.
    - agreement_events is append-only: no UPDATE or DELETE at the application level.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

UINT256_DIGITS = 78


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. offers
# ---------------------------------------------------------------------------
class OfferRecord(Base):
    """A signed offer and its escrow bookkeeping."""

    __tablename__ = "offers"

    # --- Primary Key ---
    id: Mapped[str] = mapped_column(String(66), primary_key=True)

    # --- Parties ---
    issuer: Mapped[str] = mapped_column(String(42), nullable=False)
    investor: Mapped[str] = mapped_column(String(42), nullable=False)
    delegated_to: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        comment="Only executor allowed to accept (zero address if unset)",
    )

    # --- Asset ---
    token_address: Mapped[str] = mapped_column(String(42), nullable=False)
    asset_kind: Mapped[str] = mapped_column(String(10), nullable=False)
    partition: Mapped[str] = mapped_column(String(66), nullable=False)
    token_id: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)
    amount: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)
    class_id: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)
    nonce_id: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)

    # --- Agreement Document ---
    document_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    document_uri: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # --- Replay Protection ---
    expiry: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)
    nonce: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)

    # --- Signatures ---
    issuer_sig: Mapped[str] = mapped_column(String(132), nullable=False)
    investor_sig: Mapped[str | None] = mapped_column(String(132), nullable=True, default=None)

    # --- Lifecycle ---
    status: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        comment="Current lifecycle state (guarded by OfferStateMachine)",
    )
    settled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custody_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        default=None,
        comment="Custodian receipt while assets are held",
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('NONE', 'OFFERED', 'ACCEPTED', 'REJECTED', 'CANCELLED')",
            name="ck_offer_valid_status",
        ),
        Index("idx_offer_issuer", "issuer"),
        Index("idx_offer_investor", "investor"),
        Index("idx_offer_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<OfferRecord id={self.id} status={self.status}>"


# ---------------------------------------------------------------------------
# 2. used_nonces / 3. nonce_counters
# ---------------------------------------------------------------------------
class UsedNonceRecord(Base):
    """A consumed issuer nonce."""

    __tablename__ = "used_nonces"

    issuer: Mapped[str] = mapped_column(String(42), primary_key=True)
    nonce: Mapped[str] = mapped_column(String(UINT256_DIGITS), primary_key=True)


class NonceCounterRecord(Base):
    """Advisory next nonce for an issuer (never decreases)."""

    __tablename__ = "nonce_counters"

    issuer: Mapped[str] = mapped_column(String(42), primary_key=True)
    next_nonce: Mapped[str] = mapped_column(String(UINT256_DIGITS), nullable=False)


# ---------------------------------------------------------------------------
# 4. disputes
# ---------------------------------------------------------------------------
class DisputeRecord(Base):
    """A dispute raised by any party and closed by a guardian."""

    __tablename__ = "disputes"

    id: Mapped[str] = mapped_column(String(66), primary_key=True)
    claimant: Mapped[str] = mapped_column(String(42), nullable=False)
    offer_id: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        comment="Linked offer id (all-zero when the dispute is standalone)",
    )
    evidence_uri: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(12), nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('NONE', 'RAISED', 'ACKNOWLEDGED', 'RESOLVED', 'REJECTED')",
            name="ck_dispute_valid_status",
        ),
        Index("idx_dispute_offer", "offer_id"),
        Index("idx_dispute_claimant", "claimant"),
    )

    def __repr__(self) -> str:
        return f"<DisputeRecord id={self.id} status={self.status}>"


# ---------------------------------------------------------------------------
# 5. agreement_events (Append-Only Log)
# ---------------------------------------------------------------------------
class AgreementEventRecord(Base):
    """Immutable record of a completed transition.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "agreement_events"

    # Autoincrement id doubles as the recording order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        comment="Offer or dispute id the event is about",
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    actor: Mapped[str] = mapped_column(String(42), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_event_subject", "subject_id"),
        Index("idx_event_type", "event_type"),
    )

    def __repr__(self) -> str:
        return f"<AgreementEventRecord id={self.id} type={self.event_type}>"
