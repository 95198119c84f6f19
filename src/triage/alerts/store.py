from __future__ import annotations

from typing import Iterable, Iterator, Optional, Protocol

import structlog

from triage.alerts import workflow
from triage.alerts.metrics import Metrics, compute_metrics
from triage.alerts.models import Alert
from triage.alerts.view import AlertQuery, filter_and_sort
from triage.errors import AlertNotFound

log = structlog.get_logger("store")


class AlertWriter(Protocol):
    def write_alert(self, alert: Alert) -> None: ...


class AlertStore:
    """
    Running alert collection, insertion-ordered and keyed by alert id.

    merge() only ever appends unseen ids: existing alerts are never replaced,
    dropped or reordered, so workflow progress survives every refresh.

    If a sink is given, every successful workflow transition re-publishes the
    updated alert to it.
    """
    def __init__(self, alerts: Iterable[Alert] = (), *, sink: Optional[AlertWriter] = None):
        self.sink = sink
        self._alerts: list[Alert] = []
        self._by_id: dict[str, Alert] = {}
        self.merge(alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self) -> Iterator[Alert]:
        return iter(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._by_id

    def alerts(self) -> list[Alert]:
        return list(self._alerts)

    def get(self, alert_id: str) -> Alert:
        a = self._by_id.get(alert_id)
        if a is None:
            raise AlertNotFound(alert_id)
        return a

    def merge(self, batch: Iterable[Alert]) -> list[Alert]:
        """Append alerts with unseen ids (first one wins within the batch); return those added."""
        added: list[Alert] = []
        skipped = 0
        for a in batch:
            if a.id in self._by_id:
                skipped += 1
                continue
            self._by_id[a.id] = a
            self._alerts.append(a)
            added.append(a)
        if skipped:
            log.debug("merge_skipped_duplicates", skipped=skipped)
        return added

    def apply_action(
        self,
        alert_id: str,
        action: str,
        *,
        notes: Optional[str] = None,
        user: str = workflow.DEFAULT_USER,
    ) -> bool:
        """Run a workflow action on a stored alert; True when it reached a terminal status."""
        alert = self.get(alert_id)
        terminal = workflow.apply_action(alert, action, notes=notes, user=user)
        if self.sink is not None:
            self.sink.write_alert(alert)
        return terminal

    def view(self, query: Optional[AlertQuery] = None) -> list[Alert]:
        return filter_and_sort(self._alerts, query)

    def metrics(self) -> Metrics:
        return compute_metrics(self._alerts)
