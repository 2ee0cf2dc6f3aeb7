"""Domain exceptions for the Agreement Clearinghouse.

These exceptions are framework-agnostic and represent business rule violations.
They fall into four families that callers can branch on:

    ValidationError     bad field values, rejected before any mutation
    AuthorizationError  wrong signer or wrong caller, rejected before any mutation
    ConflictError       nonce reuse, duplicate ids, stale status
    DependencyError     escrow custodian failures (the operation is rolled back)
"""


class AgreementError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "AGREEMENT_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Families ---


class ValidationError(AgreementError):
    """Raised when input fields are semantically invalid."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(message=message, code=code)


class AuthorizationError(AgreementError):
    """Raised when a signature or caller is not authorized for an operation."""

    def __init__(self, message: str, code: str = "AUTHORIZATION_ERROR") -> None:
        super().__init__(message=message, code=code)


class ConflictError(AgreementError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str, code: str = "CONFLICT") -> None:
        super().__init__(message=message, code=code)


class DependencyError(AgreementError):
    """Raised when an external collaborator (escrow custodian) fails."""

    def __init__(self, message: str, code: str = "DEPENDENCY_ERROR") -> None:
        super().__init__(message=message, code=code)


# --- Validation Errors ---


class ExpiredOfferError(ValidationError):
    """Raised when an offer is created or accepted past its expiry."""

    def __init__(self, expiry: int, now: int) -> None:
        super().__init__(
            message=f"Offer expired: expiry {expiry} is not after now ({now})",
            code="EXPIRED_OFFER",
        )
        self.expiry = expiry
        self.now = now


class InvalidOfferFieldsError(ValidationError):
    """Raised when offer terms violate a field-level rule (zero address, amounts)."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_OFFER_FIELDS")


class InvalidDisputeStatusError(ValidationError):
    """Raised when a moderator targets a status that cannot be set directly."""

    def __init__(self, status: str) -> None:
        super().__init__(
            message=f"Dispute status cannot be set to {status}",
            code="INVALID_DISPUTE_STATUS",
        )
        self.status = status


class UnsupportedAssetKindError(ValidationError):
    """Raised when no escrow custodian is registered for an asset kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            message=f"No escrow custodian registered for asset kind: {kind}",
            code="UNSUPPORTED_ASSET_KIND",
        )
        self.kind = kind


# --- Authorization Errors ---


class BadSignatureError(AuthorizationError):
    """Raised when a signature does not authorize the claimed signer.

    The ledger surfaces every signature problem through this class; the
    subclasses only exist for diagnostics.
    """

    def __init__(self, message: str = "Bad signature", code: str = "BAD_SIGNATURE") -> None:
        super().__init__(message=message, code=code)


class SignerMismatchError(BadSignatureError):
    """Raised when the recovered signer differs from the expected one."""

    def __init__(self, expected: str, recovered: str) -> None:
        super().__init__(
            message=f"Signature recovers to {recovered}, expected {expected}",
            code="SIGNER_MISMATCH",
        )
        self.expected = expected
        self.recovered = recovered


class MalformedSignatureError(BadSignatureError, ValidationError):
    """Raised when a signature or digest has the wrong shape."""

    def __init__(self, message: str) -> None:
        AgreementError.__init__(self, message=message, code="MALFORMED_SIGNATURE")


class UnauthorizedCallerError(AuthorizationError):
    """Raised when the caller is not allowed to perform an action on a record."""

    def __init__(self, caller: str, action: str) -> None:
        super().__init__(
            message=f"Caller {caller} is not authorized to {action}",
            code="UNAUTHORIZED_CALLER",
        )
        self.caller = caller
        self.action = action


class MissingRoleError(AuthorizationError):
    """Raised when the caller lacks a privileged role."""

    def __init__(self, account: str, role: str) -> None:
        super().__init__(
            message=f"Account {account} is missing role {role}",
            code="MISSING_ROLE",
        )
        self.account = account
        self.role = role


# --- Conflict Errors ---


class NonceAlreadyUsedError(ConflictError):
    """Raised when an issuer nonce has already been consumed."""

    def __init__(self, issuer: str, nonce: int) -> None:
        super().__init__(
            message=f"Nonce {nonce} already used for issuer {issuer}",
            code="NONCE_ALREADY_USED",
        )
        self.issuer = issuer
        self.nonce = nonce


class DuplicateOfferError(ConflictError):
    """Raised when an offer id already exists in the ledger."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer already exists: {offer_id}",
            code="DUPLICATE_OFFER",
        )
        self.offer_id = offer_id


class DuplicateDisputeError(ConflictError):
    """Raised when a derived dispute id collides with an existing record."""

    def __init__(self, dispute_id: str) -> None:
        super().__init__(
            message=f"Dispute already exists: {dispute_id}",
            code="DUPLICATE_DISPUTE",
        )
        self.dispute_id = dispute_id


class InvalidStateTransitionError(ConflictError):
    """Raised when an attempted state transition is not allowed.

    Example: ACCEPTED -> CANCELLED (terminal states have no outgoing edges)
    """

    def __init__(self, current_state: str, attempted_state: str) -> None:
        super().__init__(
            message=f"Invalid state transition: {current_state} -> {attempted_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.attempted_state = attempted_state


class EnginePausedError(ConflictError):
    """Raised when a mutation is attempted while the manager is paused."""

    def __init__(self) -> None:
        super().__init__(message="Agreement manager is paused", code="PAUSED")


# --- Dependency Errors ---


class EscrowTransferFailedError(DependencyError):
    """Raised when the escrow custodian refuses a hold or release."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            message=f"Escrow {operation} failed: {reason}",
            code="ESCROW_TRANSFER_FAILED",
        )
        self.operation = operation
        self.reason = reason


# --- Custodian Errors ---


class InsufficientBalanceError(AgreementError):
    """Raised by a custodian when the depositor cannot cover the asset amount."""

    def __init__(self, holder: str, required: int, available: int) -> None:
        super().__init__(
            message=f"Insufficient balance for {holder}: required {required}, available {available}",
            code="INSUFFICIENT_BALANCE",
        )
        self.holder = holder
        self.required = required
        self.available = available


class CustodyNotFoundError(AgreementError):
    """Raised by a custodian when a custody token is unknown or already released."""

    def __init__(self, custody_id: str) -> None:
        super().__init__(
            message=f"Custody not found or already released: {custody_id}",
            code="CUSTODY_NOT_FOUND",
        )
        self.custody_id = custody_id


# --- Lookup Errors ---


class OfferNotFoundError(AgreementError):
    """Raised when an offer id does not exist."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer not found: {offer_id}",
            code="OFFER_NOT_FOUND",
        )
        self.offer_id = offer_id


class DisputeNotFoundError(AgreementError):
    """Raised when a dispute id does not exist."""

    def __init__(self, dispute_id: str) -> None:
        super().__init__(
            message=f"Dispute not found: {dispute_id}",
            code="DISPUTE_NOT_FOUND",
        )
        self.dispute_id = dispute_id
