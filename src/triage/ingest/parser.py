from __future__ import annotations

import math
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from triage.errors import ProviderError, RateLimitNotice
from triage.utils.time import UTC, utc_now
from triage.utils.types import IntervalPoint, Snapshot

INTRADAY_SERIES_KEY = "Time Series (15min)"
HISTORY_POINTS = 10
DEFAULT_SERIES_TZ = "US/Eastern"


def check_payload(m: dict, symbol: str | None = None) -> None:
    """
    Raise if `m` is an Alpha Vantage error or rate-limit payload.

    The provider answers HTTP 200 in every case and signals problems in-band:
      - {"Error Message": "..."}   bad symbol / bad key
      - {"Note": "..."}            per-minute call quota hit
      - {"Information": "..."}     daily quota hit / premium endpoint
    """
    if not isinstance(m, dict):
        raise ProviderError(f"unexpected payload type {type(m).__name__}", symbol=symbol)
    if m.get("Error Message"):
        raise ProviderError(str(m["Error Message"]), symbol=symbol)
    note = m.get("Note") or m.get("Information")
    if note:
        raise RateLimitNotice(str(note), symbol=symbol)


def _num(raw, field: str, symbol: str | None) -> float:
    try:
        return float(str(raw).strip().rstrip("%"))
    except (TypeError, ValueError):
        raise ProviderError(f"bad numeric field {field}={raw!r}", symbol=symbol) from None


def _count(raw, field: str, symbol: str | None) -> int:
    v = _num(raw, field, symbol)
    if not math.isfinite(v):
        raise ProviderError(f"bad numeric field {field}={raw!r}", symbol=symbol)
    return int(v)


def parse_global_quote(m: dict, symbol: str | None = None) -> Optional[Snapshot]:
    """
    Return a Snapshot for a GLOBAL_QUOTE success payload, None if the quote is
    empty (unknown symbols come back as {"Global Quote": {}}).

    Success payload:
      {"Global Quote": {"01. symbol": "IBM", "05. price": "189.2200",
                        "06. volume": "3101524", "08. previous close": "187.1000",
                        "09. change": "2.1200", "10. change percent": "1.1331%", ...}}
    """
    check_payload(m, symbol)
    q = m.get("Global Quote")
    if not q:
        return None
    if not isinstance(q, dict):
        raise ProviderError(f"unexpected quote type {type(q).__name__}", symbol=symbol)

    sym = q.get("01. symbol") or symbol
    if not sym:
        return None

    prev_raw = q.get("08. previous close")
    return Snapshot(
        symbol=str(sym).upper(),
        price=_num(q.get("05. price"), "price", sym),
        volume=_count(q.get("06. volume"), "volume", sym),
        change=_num(q.get("09. change", 0), "change", sym),
        change_percent=_num(q.get("10. change percent", "0%"), "change percent", sym),
        timestamp=utc_now(),
        previous_close=_num(prev_raw, "previous close", sym) if prev_raw not in (None, "") else None,
    )


def parse_intraday(m: dict, symbol: str | None = None, limit: int = HISTORY_POINTS) -> list[IntervalPoint]:
    """
    Return up to `limit` most recent 15-minute points, oldest first.

    The provider keys the series by local timestamps ("2024-02-01 15:45:00",
    newest first) in the zone named by "Meta Data" -> "6. Time Zone".
    """
    check_payload(m, symbol)
    series = m.get(INTRADAY_SERIES_KEY)
    if not series:
        return []
    if not isinstance(series, dict):
        raise ProviderError(f"unexpected series type {type(series).__name__}", symbol=symbol)

    meta = m.get("Meta Data")
    tz_name = (meta.get("6. Time Zone") if isinstance(meta, dict) else None) or DEFAULT_SERIES_TZ
    try:
        tz = ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        raise ProviderError(f"unknown series time zone {tz_name!r}", symbol=symbol) from None

    newest = sorted(series.keys(), reverse=True)[:limit]
    out: list[IntervalPoint] = []
    for key in reversed(newest):
        values = series[key]
        if not isinstance(values, dict):
            raise ProviderError(f"bad series point {key}={values!r}", symbol=symbol)
        try:
            ts = datetime.fromisoformat(key)
        except ValueError:
            raise ProviderError(f"bad series timestamp {key!r}", symbol=symbol) from None
        ts = ts.replace(tzinfo=tz).astimezone(UTC)
        out.append(
            IntervalPoint(
                price=_num(values.get("4. close"), "close", symbol),
                volume=_count(values.get("5. volume"), "volume", symbol),
                timestamp=ts,
            )
        )
    return out
