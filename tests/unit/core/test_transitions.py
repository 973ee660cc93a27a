"""Tests for the application and interview transition tables."""

import pytest

from core.exceptions import InvalidTransitionError
from core.workflow.transitions import (
    ACTIVE_INTERVIEW_STATUSES,
    APPLICATION_TRANSITIONS,
    HIRE_SOURCE_STATUSES,
    INTERVIEW_TRANSITIONS,
    SCHEDULE_SOURCE_STATUSES,
    TERMINAL_APPLICATION_STATUSES,
    assert_interview_transition,
    assert_source_status,
    assert_transition,
    can_transition,
)
from database.models.applications import ApplicationStatus as S
from database.models.interviews import InterviewStatus as I


class TestApplicationTransitions:

    @pytest.mark.parametrize("current,target", [
        (S.APPLIED, S.SHORTLISTED),
        (S.APPLIED, S.INTERVIEWED),
        (S.APPLIED, S.HIRED),
        (S.APPLIED, S.DECLINED),
        (S.APPLIED, S.WITHDRAWN),
        (S.INVITED, S.INVITED_APPLIED),
        (S.INVITED, S.WITHDRAWN),
        (S.INVITED_APPLIED, S.INTERVIEWED),
        (S.SHORTLISTED, S.HIRED),
        (S.INTERVIEWED, S.HIRED),
        (S.INTERVIEWED, S.DECLINED),
        (S.HIRED, S.ACCEPTED),
        (S.HIRED, S.DECLINED),
    ])
    def test_allowed_edges(self, current, target):
        assert can_transition(current, target)
        assert_transition(current, target, "move")

    @pytest.mark.parametrize("current,target", [
        (S.INVITED, S.HIRED),
        (S.INVITED, S.SHORTLISTED),
        (S.INTERVIEWED, S.SHORTLISTED),
        (S.HIRED, S.WITHDRAWN),
        (S.APPLIED, S.ACCEPTED),
        (S.DECLINED, S.APPLIED),
        (S.WITHDRAWN, S.SHORTLISTED),
        (S.ACCEPTED, S.DECLINED),
    ])
    def test_rejected_edges(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidTransitionError) as exc_info:
            assert_transition(current, target, "move")
        assert exc_info.value.current_status == current.value
        assert exc_info.value.status_code == 409

    def test_terminal_statuses_have_no_exits(self):
        assert TERMINAL_APPLICATION_STATUSES == {S.DECLINED, S.WITHDRAWN, S.ACCEPTED}

    def test_every_status_has_an_entry(self):
        assert set(APPLICATION_TRANSITIONS) == set(S)


class TestActionSources:

    def test_hire_sources(self):
        assert HIRE_SOURCE_STATUSES == {S.APPLIED, S.INVITED_APPLIED, S.INTERVIEWED}

    def test_schedule_sources(self):
        assert SCHEDULE_SOURCE_STATUSES == {S.APPLIED, S.INVITED_APPLIED}

    @pytest.mark.parametrize("allowed,action", [
        (HIRE_SOURCE_STATUSES, "hire"),
        (SCHEDULE_SOURCE_STATUSES, "schedule an interview for"),
    ])
    def test_shortlisted_is_not_a_source(self, allowed, action):
        with pytest.raises(InvalidTransitionError) as exc_info:
            assert_source_status(S.SHORTLISTED, allowed, action)
        assert exc_info.value.current_status == "shortlisted"

    def test_allowed_source_passes(self):
        assert_source_status(S.INTERVIEWED, HIRE_SOURCE_STATUSES, "hire")


class TestInterviewTransitions:

    def test_reschedule_allowed_from_scheduled_and_confirmed(self):
        assert_interview_transition(I.SCHEDULED, I.RESCHEDULED, "reschedule")
        assert_interview_transition(I.CONFIRMED, I.RESCHEDULED, "reschedule")

    @pytest.mark.parametrize("terminal", [I.COMPLETED, I.CANCELLED, I.NO_SHOW])
    def test_terminal_interviews_cannot_move(self, terminal):
        assert INTERVIEW_TRANSITIONS[terminal] == frozenset()
        with pytest.raises(InvalidTransitionError):
            assert_interview_transition(terminal, I.CONFIRMED, "confirm")

    def test_confirmed_cannot_go_back_to_scheduled(self):
        with pytest.raises(InvalidTransitionError):
            assert_interview_transition(I.CONFIRMED, I.SCHEDULED, "schedule")

    def test_slot_holding_statuses(self):
        assert ACTIVE_INTERVIEW_STATUSES == {I.SCHEDULED, I.CONFIRMED, I.RESCHEDULED}
