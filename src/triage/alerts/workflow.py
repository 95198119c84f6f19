from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog

from triage.alerts.models import Alert, TimelineEvent
from triage.errors import InvalidTransition
from triage.utils.time import utc_now
from triage.utils.types import TERMINAL_STATUSES

log = structlog.get_logger("workflow")

DEFAULT_USER = "Current User"

# action -> (allowed source statuses, destination status); dict order is display order
TRANSITIONS: dict[str, tuple[frozenset[str], str]] = {
    "Start Investigation": (frozenset({"New"}), "In Review"),
    "Escalate": (frozenset({"New", "In Review"}), "Escalated"),
    "Dismiss": (frozenset({"New", "In Review", "Escalated"}), "Dismissed"),
    "Mark Resolved": (frozenset({"New", "In Review", "Escalated"}), "Resolved"),
}

# status implied by the action label of an alert's latest timeline event
ACTION_STATUS: dict[str, str] = {"Alert Created": "New"}
ACTION_STATUS.update({action: dest for action, (_, dest) in TRANSITIONS.items()})


def available_actions(status: str) -> list[str]:
    """Actions the detail view offers for an alert in `status`."""
    return [action for action, (sources, _) in TRANSITIONS.items() if status in sources]


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def status_for_action(action: str) -> Optional[str]:
    return ACTION_STATUS.get(action)


def apply_action(
    alert: Alert,
    action: str,
    *,
    notes: Optional[str] = None,
    user: str = DEFAULT_USER,
    now: Optional[datetime] = None,
) -> bool:
    """
    Move `alert` through `action`, appending one timeline event.

    `notes`, when given, replaces the alert's investigation notes before the
    event is recorded; the event carries the then-current notes (None if blank).
    Returns True when the new status is terminal, i.e. the detail view should close.
    Raises InvalidTransition for unknown actions or actions illegal from the
    current status; the alert is left untouched in that case.
    """
    rule = TRANSITIONS.get(action)
    if rule is None or alert.status not in rule[0]:
        raise InvalidTransition(alert.status, action)
    dest = rule[1]

    if notes is not None:
        alert.investigation_notes = notes
    event = TimelineEvent(
        id=f"{alert.id}-{len(alert.timeline)}",
        timestamp=now or utc_now(),
        action=action,
        user=user,
        notes=alert.investigation_notes or None,
    )
    alert.timeline.append(event)
    prev = alert.status
    alert.status = dest
    log.info("alert_transition", alert_id=alert.id, action=action, from_status=prev, to_status=dest, user=user)
    return is_terminal(dest)
