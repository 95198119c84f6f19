# src/storage/export.py
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from triage.alerts.models import Alert, alert_from_dict, alert_to_dict
from triage.utils.time import local_now

FILENAME_PREFIX = "compliance-alerts"

def export_filename(now: datetime) -> str:
    # compliance-alerts-2024-01-15.json
    return f"{FILENAME_PREFIX}-{now.date().isoformat()}.json"

def dumps_alerts(alerts: Iterable[Alert]) -> str:
    return json.dumps([alert_to_dict(a) for a in alerts], indent=2, ensure_ascii=False)

def export_alerts(alerts: Iterable[Alert], directory: str | Path, *, now: Optional[datetime] = None) -> Path:
    """
    Write `alerts` (already filtered/sorted by the caller) as an indented JSON
    array, every field and the full timeline included. Returns the file path.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(now or local_now())
    path.write_text(dumps_alerts(alerts) + "\n", encoding="utf-8")
    return path

def load_alerts(path: str | Path) -> list[Alert]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return [alert_from_dict(d) for d in data]
