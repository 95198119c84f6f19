from datetime import datetime, timezone

import pytest

from triage.errors import ProviderError, RateLimitNotice
from triage.ingest import parser
from triage.utils.types import IntervalPoint, Snapshot

QUOTE = {
    "Global Quote": {
        "01. symbol": "TSLA",
        "02. open": "240.0000",
        "05. price": "251.1200",
        "06. volume": "3000000",
        "07. latest trading day": "2024-01-15",
        "08. previous close": "242.0000",
        "09. change": "9.1200",
        "10. change percent": "3.7686%",
    }
}


def test_parse_global_quote_success():
    s = parser.parse_global_quote(QUOTE, "TSLA")
    assert isinstance(s, Snapshot)
    assert s.symbol == "TSLA"
    assert s.price == pytest.approx(251.12)
    assert s.volume == 3_000_000 and isinstance(s.volume, int)
    assert s.change == pytest.approx(9.12)
    assert s.change_percent == pytest.approx(3.7686)
    assert s.previous_close == pytest.approx(242.0)
    assert s.timestamp.tzinfo is not None


def test_parse_negative_change_percent():
    m = {"Global Quote": dict(QUOTE["Global Quote"], **{"10. change percent": "-4.5000%"})}
    assert parser.parse_global_quote(m).change_percent == pytest.approx(-4.5)


def test_empty_quote_returns_none():
    assert parser.parse_global_quote({"Global Quote": {}}, "NOPE") is None
    assert parser.parse_global_quote({}, "NOPE") is None


def test_error_and_rate_limit_payloads_raise():
    with pytest.raises(ProviderError) as ei:
        parser.parse_global_quote({"Error Message": "Invalid API call."}, "TSLA")
    assert not isinstance(ei.value, RateLimitNotice)
    assert ei.value.symbol == "TSLA"
    for m in ({"Note": "Thank you for using Alpha Vantage! 5 calls per minute"}, {"Information": "daily limit"}):
        with pytest.raises(RateLimitNotice):
            parser.parse_global_quote(m, "TSLA")


def test_malformed_number_raises_provider_error():
    m = {"Global Quote": dict(QUOTE["Global Quote"], **{"05. price": "n/a"})}
    with pytest.raises(ProviderError):
        parser.parse_global_quote(m, "TSLA")


def _intraday(n):
    series = {}
    for i in range(n):
        hh, mm = divmod(9 * 60 + 30 + 15 * i, 60)
        series[f"2024-01-15 {hh:02d}:{mm:02d}:00"] = {"4. close": f"{100 + i}.0000", "5. volume": str(1000 * (i + 1))}
    return {"Meta Data": {"6. Time Zone": "US/Eastern"}, "Time Series (15min)": series}


def test_parse_intraday_keeps_ten_most_recent_oldest_first():
    pts = parser.parse_intraday(_intraday(14), "TSLA")
    assert len(pts) == 10
    assert all(isinstance(p, IntervalPoint) for p in pts)
    assert [p.price for p in pts] == [float(100 + i) for i in range(4, 14)]
    assert pts[0].timestamp < pts[-1].timestamp
    # 10:30 US/Eastern in January = 15:30 UTC
    assert pts[0].timestamp == datetime(2024, 1, 15, 15, 30, tzinfo=timezone.utc)


def test_parse_intraday_short_and_missing_series():
    assert len(parser.parse_intraday(_intraday(3))) == 3
    assert parser.parse_intraday({"Meta Data": {}}) == []
    with pytest.raises(RateLimitNotice):
        parser.parse_intraday({"Note": "slow down"})


def test_malformed_shapes_raise_provider_error():
    series = {"2024-01-15 10:00:00": {"4. close": "1.0", "5. volume": "10"}}
    bad = [
        lambda: parser.parse_global_quote({"Global Quote": ["x"]}, "TSLA"),
        lambda: parser.parse_global_quote({"Global Quote": dict(QUOTE["Global Quote"], **{"06. volume": "inf"})}, "TSLA"),
        lambda: parser.parse_intraday({"Meta Data": {"6. Time Zone": "Mars/Olympus"}, "Time Series (15min)": series}, "TSLA"),
        lambda: parser.parse_intraday({"Time Series (15min)": {"2024-01-15 10:00:00": "oops"}}, "TSLA"),
        lambda: parser.parse_intraday({"Time Series (15min)": ["x"]}, "TSLA"),
    ]
    for call in bad:
        with pytest.raises(ProviderError):
            call()


def test_missing_meta_data_uses_eastern_time():
    pts = parser.parse_intraday(
        {"Meta Data": "n/a", "Time Series (15min)": {"2024-01-15 10:00:00": {"4. close": "1.0", "5. volume": "10"}}},
        "TSLA",
    )
    assert pts[0].timestamp == datetime(2024, 1, 15, 15, 0, tzinfo=timezone.utc)
