import pytest

from triage.alerts.store import AlertStore
from triage.alerts.view import AlertQuery
from triage.errors import AlertNotFound, InvalidTransition
from tests.helpers.factories import make_alert


def test_merge_appends_unseen_and_keeps_existing_order():
    store = AlertStore([make_alert("A"), make_alert("B")])
    store.apply_action("A", "Start Investigation", notes="wip")

    replacement = make_alert("A")          # same id, fresh "New" state
    added = store.merge([make_alert("C"), replacement, make_alert("B"), make_alert("C")])

    assert [a.id for a in added] == ["C"]
    assert [a.id for a in store] == ["A", "B", "C"]
    assert store.get("A").status == "In Review"
    assert store.get("A") is not replacement
    assert len(store) == 3


def test_merge_never_produces_duplicate_ids():
    store = AlertStore()
    for _ in range(3):
        store.merge([make_alert(x) for x in "ABCA"])
    ids = [a.id for a in store]
    assert ids == ["A", "B", "C"]
    assert len(ids) == len(set(ids))


def test_get_unknown_raises():
    store = AlertStore()
    with pytest.raises(AlertNotFound):
        store.get("nope")
    with pytest.raises(KeyError):
        store.get("nope")
    assert "nope" not in store


def test_apply_action_reports_terminal_and_rejects_illegal():
    store = AlertStore([make_alert("A")])
    assert store.apply_action("A", "Dismiss") is True
    with pytest.raises(InvalidTransition):
        store.apply_action("A", "Escalate")


def test_view_and_metrics():
    store = AlertStore([make_alert("A", severity="Low"), make_alert("B", severity="Critical")])
    store.apply_action("B", "Dismiss")
    assert [a.id for a in store.view(AlertQuery(sort_by="severity"))] == ["B", "A"]
    m = store.metrics()
    assert m.total_alerts == 2
    assert m.pending_review == 1
    assert m.false_positive_rate == 100.0


class _RecordingSink:
    def __init__(self):
        self.written = []

    def write_alert(self, alert):
        self.written.append((alert.id, alert.status))


def test_workflow_transitions_are_republished_to_sink():
    sink = _RecordingSink()
    store = AlertStore([make_alert("A")], sink=sink)
    store.apply_action("A", "Escalate")
    store.apply_action("A", "Mark Resolved", notes="closed out")
    assert sink.written == [("A", "Escalated"), ("A", "Resolved")]

    with pytest.raises(InvalidTransition):
        store.apply_action("A", "Dismiss")
    assert len(sink.written) == 2
