"""Database infrastructure — engine, ORM models, repositories and the SQL store."""

from agreement_clearinghouse.infrastructure.database.engine import (
    close_db,
    get_session_factory,
    init_db,
)
from agreement_clearinghouse.infrastructure.database.orm_models import (
    AgreementEventRecord,
    Base,
    DisputeRecord,
    NonceCounterRecord,
    OfferRecord,
    UsedNonceRecord,
)
from agreement_clearinghouse.infrastructure.database.repositories import (
    DisputeRepository,
    EventRepository,
    NonceRepository,
    OfferRepository,
)
from agreement_clearinghouse.infrastructure.database.store import SqlAgreementStore

__all__ = [
    "AgreementEventRecord",
    "Base",
    "DisputeRecord",
    "DisputeRepository",
    "EventRepository",
    "NonceCounterRecord",
    "NonceRepository",
    "OfferRecord",
    "OfferRepository",
    "SqlAgreementStore",
    "UsedNonceRecord",
    "close_db",
    "get_session_factory",
    "init_db",
]
