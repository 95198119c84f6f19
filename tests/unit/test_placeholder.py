from triage.alerts.placeholder import placeholder_alerts
from triage.utils.types import ALERT_CATEGORIES


def test_placeholder_set_is_stable_and_fresh():
    a, b = placeholder_alerts(), placeholder_alerts()
    assert [x.id for x in a] == [x.id for x in b]
    assert len({x.id for x in a}) == len(a) == 5
    assert a[0] is not b[0]
    a[0].status = "Dismissed"
    assert b[0].status == "New"


def test_placeholder_alerts_are_well_formed():
    for x in placeholder_alerts():
        assert x.type in ALERT_CATEGORIES
        assert x.status == "New"
        assert x.timeline[0].action == "Alert Created"
