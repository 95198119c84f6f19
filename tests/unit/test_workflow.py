from datetime import timedelta

import pytest

from triage.alerts import workflow
from triage.errors import InvalidTransition
from tests.helpers.factories import T0, make_alert


def test_available_actions_per_status():
    assert workflow.available_actions("New") == ["Start Investigation", "Escalate", "Dismiss", "Mark Resolved"]
    assert workflow.available_actions("In Review") == ["Escalate", "Dismiss", "Mark Resolved"]
    assert workflow.available_actions("Escalated") == ["Dismiss", "Mark Resolved"]
    assert workflow.available_actions("Dismissed") == []
    assert workflow.available_actions("Resolved") == []


def test_happy_path_appends_one_event_per_transition():
    a = make_alert()
    closes = workflow.apply_action(a, "Start Investigation", notes="looking", now=T0 + timedelta(minutes=5))
    assert closes is False
    assert a.status == "In Review"
    assert a.investigation_notes == "looking"

    assert workflow.apply_action(a, "Escalate", now=T0 + timedelta(minutes=10)) is False
    assert a.status == "Escalated"

    assert workflow.apply_action(a, "Mark Resolved", notes="cleared", user="jdoe", now=T0 + timedelta(minutes=45)) is True
    assert a.status == "Resolved"

    assert [e.action for e in a.timeline] == ["Alert Created", "Start Investigation", "Escalate", "Mark Resolved"]
    last = a.timeline[-1]
    assert last.user == "jdoe"
    assert last.notes == "cleared"
    assert last.id == f"{a.id}-3"
    # Escalate carried the then-current notes
    assert a.timeline[2].notes == "looking"
    assert len({e.id for e in a.timeline}) == 4


def test_status_matches_latest_event_action():
    a = make_alert()
    assert workflow.status_for_action(a.last_event.action) == a.status
    for action in ("Start Investigation", "Escalate", "Dismiss"):
        workflow.apply_action(a, action)
        assert workflow.status_for_action(a.last_event.action) == a.status


def test_blank_notes_are_recorded_as_none():
    a = make_alert()
    workflow.apply_action(a, "Dismiss", notes="")
    assert a.timeline[-1].notes is None


@pytest.mark.parametrize(
    "path, bad",
    [
        ([], "Reopen"),
        (["Start Investigation"], "Start Investigation"),
        (["Escalate"], "Escalate"),
        (["Escalate"], "Start Investigation"),
        (["Dismiss"], "Mark Resolved"),
        (["Mark Resolved"], "Dismiss"),
        (["Mark Resolved"], "Escalate"),
    ],
)
def test_illegal_transitions_raise_and_leave_alert_untouched(path, bad):
    a = make_alert()
    for action in path:
        workflow.apply_action(a, action)
    status, n_events = a.status, len(a.timeline)
    with pytest.raises(InvalidTransition) as ei:
        workflow.apply_action(a, bad, notes="should not stick")
    assert ei.value.status == status and ei.value.action == bad
    assert a.status == status
    assert len(a.timeline) == n_events
    assert a.investigation_notes != "should not stick"


def test_terminal_statuses():
    assert workflow.is_terminal("Dismissed") and workflow.is_terminal("Resolved")
    assert not workflow.is_terminal("Escalated")
