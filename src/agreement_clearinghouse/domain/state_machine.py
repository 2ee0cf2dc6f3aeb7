"""Offer and Dispute State Machine Guards.

Uses python-statemachine to enforce legal state transitions at the domain level.
No matter what the caller does, an illegal transition (e.g., ACCEPTED -> CANCELLED)
raises before any record is touched.

The machines are instantiated per-record and validate transitions before the
stored status is updated.

Offer transition table:
    NONE      -> OFFERED    (publish)
    OFFERED   -> ACCEPTED   (accept)
    OFFERED   -> REJECTED   (reject)
    OFFERED   -> CANCELLED  (cancel)
    OFFERED   -> CANCELLED  (clean_up)

Dispute transition table:
    NONE      -> RAISED        (open)
    RAISED    -> ACKNOWLEDGED  (acknowledge)
    RAISED    -> RESOLVED      (resolve)
    RAISED    -> REJECTED      (dismiss)
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from agreement_clearinghouse.domain.enums import DisputeStatus
from agreement_clearinghouse.domain.exceptions import InvalidStateTransitionError


def _check_status(machine: StateMachine, current_status: str) -> None:
    valid_values = {s.value for s in machine.states}
    if current_status not in valid_values:
        valid = ", ".join(sorted(valid_values))
        raise ValueError(f"Unknown status '{current_status}'. Valid states: {valid}")


class OfferStateMachine(StateMachine):
    """State machine that guards the offer lifecycle.

    Usage:
        sm = OfferStateMachine(current_status="OFFERED")
        sm.accept()    # transitions to ACCEPTED
        sm.status      # "ACCEPTED"
    """

    # --- States ---
    NONE = State("NONE", initial=True)
    OFFERED = State("OFFERED")
    ACCEPTED = State("ACCEPTED", final=True)
    REJECTED = State("REJECTED", final=True)
    CANCELLED = State("CANCELLED", final=True)

    # --- Events / Transitions ---
    publish = NONE.to(OFFERED)
    accept = OFFERED.to(ACCEPTED)
    reject = OFFERED.to(REJECTED)
    cancel = OFFERED.to(CANCELLED)
    clean_up = OFFERED.to(CANCELLED)

    def __init__(self, current_status: str = "NONE") -> None:
        _check_status(self, current_status)
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches OfferStatus)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


class DisputeStateMachine(StateMachine):
    """State machine that guards the dispute lifecycle.

    Every moderator decision is final: a dispute moves out of RAISED once.
    """

    # --- States ---
    NONE = State("NONE", initial=True)
    RAISED = State("RAISED")
    ACKNOWLEDGED = State("ACKNOWLEDGED", final=True)
    RESOLVED = State("RESOLVED", final=True)
    REJECTED = State("REJECTED", final=True)

    # --- Events / Transitions ---
    open = NONE.to(RAISED)
    acknowledge = RAISED.to(ACKNOWLEDGED)
    resolve = RAISED.to(RESOLVED)
    dismiss = RAISED.to(REJECTED)

    def __init__(self, current_status: str = "NONE") -> None:
        _check_status(self, current_status)
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches DisputeStatus)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


# Moderator target status -> dispute machine event
DISPUTE_STATUS_EVENTS: dict[DisputeStatus, str] = {
    DisputeStatus.ACKNOWLEDGED: "acknowledge",
    DisputeStatus.RESOLVED: "resolve",
    DisputeStatus.REJECTED: "dismiss",
}


def fire_transition(
    machine_cls: type[OfferStateMachine] | type[DisputeStateMachine],
    current_status: str,
    event_name: str,
) -> str:
    """Validate a transition and return the resulting status.

    Creates a temporary state machine at ``current_status``, fires the named
    event and returns the new status string. Nothing is persisted.

    Raises:
        InvalidStateTransitionError: If the event cannot fire from the status.
        ValueError: If the status or event name is unknown.
    """
    sm = machine_cls(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    try:
        event_method()
    except TransitionNotAllowed as err:
        raise InvalidStateTransitionError(current_status, event_name) from err
    return sm.status
