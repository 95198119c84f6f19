# src/triage/alerts/notifiers.py
from __future__ import annotations
import structlog
from typing import Callable, Optional

from triage.alerts.models import Alert

log = structlog.get_logger("notifier")

class ConsoleNotifier:
    def __init__(self, format_fn: Optional[Callable[[Alert], str]] = None):
        self._format_fn = format_fn

    async def send(self, alert: Alert):
        if self._format_fn:
            try:
                text = self._format_fn(alert)
                print(text, flush=True)
                return
            except Exception as e:
                log.warning("console_format_failed", alert_id=alert.id, err=str(e))
        # fallback (raw)
        print(f"[ALERT] {alert.id} {alert.severity} {alert.type} {alert.description}", flush=True)
