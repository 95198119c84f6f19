from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from triage.alerts.models import Alert, TimelineEvent, Trader
from triage.alerts.rules import DEFAULT_RULES, Rule, RuleContext, build_context
from triage.utils.time import epoch_ms, local_now
from triage.utils.types import ALERT_CATEGORIES, IntervalPoint, Snapshot

log = structlog.get_logger("engine")

DETECTED_BY = "Real-Time Market Monitoring System"
SYSTEM_USER = "Automated System"
CREATED_ACTION = "Alert Created"
FALLBACK_CATEGORY = "Market Manipulation"

# synthetic trader identities; no trader feed exists at this layer
TRADER_NAMES = (
    "James Mitchell", "Sarah Chen", "Michael Rodriguez", "Emily Johnson",
    "David Kim", "Lisa Anderson", "Robert Taylor", "Jennifer Martinez",
)
TRADER_FIRM = "Market Participant"
TRADER_REGISTERED = datetime(2020, 1, 1, tzinfo=timezone.utc)


def normalize_category(category: str) -> str:
    """
    Categories outside the closed taxonomy ("Unusual Activity",
    "Suspicious Trading Pattern") are reported as Market Manipulation.
    """
    if category in ALERT_CATEGORIES:
        return category
    log.debug("category_remapped", category=category, to=FALLBACK_CATEGORY)
    return FALLBACK_CATEGORY


def trader_for_symbol(symbol: str) -> Trader:
    name = TRADER_NAMES[ord(symbol[0]) % len(TRADER_NAMES)] if symbol else TRADER_NAMES[0]
    return Trader(
        id=f"TRD{symbol}",
        name=name,
        email=f"{name.lower().replace(' ', '.', 1)}@trading.com",
        firm=TRADER_FIRM,
        registration_date=TRADER_REGISTERED,
    )


def build_alert(rule: Rule, ctx: RuleContext) -> Alert:
    snap = ctx.current
    alert_id = f"ALT{epoch_ms(ctx.now)}-{snap.symbol}-{rule.key}"
    created = TimelineEvent(
        id=f"{alert_id}-0",
        timestamp=snap.timestamp,
        action=CREATED_ACTION,
        user=SYSTEM_USER,
        notes=f"Detected from live market data - Price: ${snap.price:.2f}, Volume: {snap.volume:,}",
    )
    return Alert(
        id=alert_id,
        type=normalize_category(rule.category),
        severity=rule.severity_of(ctx),
        status="New",
        trader=trader_for_symbol(snap.symbol),
        timestamp=snap.timestamp,
        description=f"{snap.symbol}: {rule.describe(ctx)}",
        detected_by=DETECTED_BY,
        investigation_notes="",
        timeline=[created],
    )


def generate_alerts(
    snapshots: Iterable[Snapshot],
    previous_by_symbol: Mapping[str, Snapshot],
    history_by_symbol: Mapping[str, Sequence[IntervalPoint]],
    *,
    now: Optional[datetime] = None,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> list[Alert]:
    """
    Evaluate every rule against every snapshot and return the new alerts.

    Pure: reads the previous-snapshot and history maps but never mutates them.
    A missing previous snapshot or empty history only suppresses the rules
    that need it. With no history the volume baseline is the snapshot's own
    volume, so the volume-spike rule cannot fire.

    `now` is the generation instant (local wall clock by default); it feeds the
    after-hours rule and the alert ids.
    """
    now = now or local_now()
    alerts: list[Alert] = []
    for snap in snapshots:
        ctx = build_context(
            current=snap,
            previous=previous_by_symbol.get(snap.symbol),
            history=history_by_symbol.get(snap.symbol) or (),
            now=now,
        )
        for rule in rules:
            if rule.applies(ctx):
                alert = build_alert(rule, ctx)
                log.debug("rule_fired", symbol=snap.symbol, rule=rule.name, severity=alert.severity)
                alerts.append(alert)
    return alerts
