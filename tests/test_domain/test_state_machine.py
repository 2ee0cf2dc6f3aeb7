"""Tests for the offer and dispute state machine guards.

These tests verify that:
    1. All valid transitions are allowed.
    2. Terminal states have no outgoing edges.
    3. The convenience function fire_transition maps failures to domain errors.
"""

from __future__ import annotations

import warnings

import pytest
from statemachine.exceptions import TransitionNotAllowed

from agreement_clearinghouse.domain.enums import DisputeStatus
from agreement_clearinghouse.domain.exceptions import ConflictError, InvalidStateTransitionError
from agreement_clearinghouse.domain.state_machine import (
    DISPUTE_STATUS_EVENTS,
    DisputeStateMachine,
    OfferStateMachine,
    fire_transition,
)


class TestOfferLifecycle:
    """NONE -> OFFERED -> one of ACCEPTED / REJECTED / CANCELLED."""

    def test_publish_then_accept(self) -> None:
        sm = OfferStateMachine()
        assert sm.status == "NONE"

        sm.publish()
        assert sm.status == "OFFERED"

        sm.accept()
        assert sm.status == "ACCEPTED"

    def test_reject(self) -> None:
        sm = OfferStateMachine("OFFERED")
        sm.reject()
        assert sm.status == "REJECTED"

    def test_cancel_and_clean_up_both_end_cancelled(self) -> None:
        for event in ("cancel", "clean_up"):
            sm = OfferStateMachine("OFFERED")
            getattr(sm, event)()
            assert sm.status == "CANCELLED"


class TestOfferIllegalTransitions:
    def test_accepted_cannot_be_cancelled(self) -> None:
        sm = OfferStateMachine("ACCEPTED")
        with pytest.raises(TransitionNotAllowed):
            sm.cancel()

    def test_none_cannot_be_accepted(self) -> None:
        sm = OfferStateMachine("NONE")
        with pytest.raises(TransitionNotAllowed):
            sm.accept()

    def test_offered_cannot_be_republished(self) -> None:
        sm = OfferStateMachine("OFFERED")
        with pytest.raises(TransitionNotAllowed):
            sm.publish()

    @pytest.mark.parametrize("status", ["ACCEPTED", "REJECTED", "CANCELLED"])
    def test_terminal_states_are_final(self, status: str) -> None:
        assert OfferStateMachine(status).get_allowed_events() == []


class TestOfferAllowedEvents:
    def test_offered_allowed(self) -> None:
        allowed = OfferStateMachine("OFFERED").get_allowed_events()
        assert set(allowed) == {"accept", "reject", "cancel", "clean_up"}

    def test_none_allowed(self) -> None:
        assert OfferStateMachine("NONE").get_allowed_events() == ["publish"]

    @pytest.mark.parametrize("status", ["NONE", "OFFERED"])
    def test_allowed_events_can_be_fired(self, status: str) -> None:
        for event in OfferStateMachine(status).get_allowed_events():
            assert fire_transition(OfferStateMachine, status, event) != status

    def test_status_read_emits_no_warning(self) -> None:
        offer, dispute = OfferStateMachine("OFFERED"), DisputeStateMachine("RAISED")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert offer.status == "OFFERED"
            assert dispute.status == "RAISED"


class TestDisputeLifecycle:
    def test_open(self) -> None:
        sm = DisputeStateMachine()
        sm.open()
        assert sm.status == "RAISED"

    @pytest.mark.parametrize(
        ("event", "expected"),
        [("acknowledge", "ACKNOWLEDGED"), ("resolve", "RESOLVED"), ("dismiss", "REJECTED")],
    )
    def test_moderator_decisions(self, event: str, expected: str) -> None:
        sm = DisputeStateMachine("RAISED")
        getattr(sm, event)()
        assert sm.status == expected

    @pytest.mark.parametrize("status", ["ACKNOWLEDGED", "RESOLVED", "REJECTED"])
    def test_decisions_are_final(self, status: str) -> None:
        assert DisputeStateMachine(status).get_allowed_events() == []

    def test_status_events_cover_moderator_targets(self) -> None:
        assert set(DISPUTE_STATUS_EVENTS) == {
            DisputeStatus.ACKNOWLEDGED,
            DisputeStatus.RESOLVED,
            DisputeStatus.REJECTED,
        }


class TestFireTransition:
    """Test the convenience function."""

    def test_valid_transition(self) -> None:
        assert fire_transition(OfferStateMachine, "OFFERED", "accept") == "ACCEPTED"

    def test_illegal_transition_is_conflict(self) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            fire_transition(OfferStateMachine, "ACCEPTED", "cancel")
        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.current_state == "ACCEPTED"
        assert exc_info.value.attempted_state == "cancel"

    def test_repeated_dispute_decision(self) -> None:
        status = fire_transition(DisputeStateMachine, "RAISED", "resolve")
        with pytest.raises(InvalidStateTransitionError):
            fire_transition(DisputeStateMachine, status, "resolve")

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            fire_transition(OfferStateMachine, "OFFERED", "nonexistent_event")

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            OfferStateMachine("INVALID_STATUS")
