import pytest

from triage.alerts.rules import (
    DEFAULT_RULES,
    average_volume,
    build_context,
    momentum_pct,
    volume_increase_pct,
)
from tests.helpers.factories import MIDDAY, history, snap


def test_average_volume_mean_or_fallback():
    assert average_volume(history(volumes=[100, 200, 300]), fallback=7) == pytest.approx(200.0)
    assert average_volume([], fallback=7) == 7.0


def test_momentum_pct_reads_last_two_points():
    ctx = build_context(snap(), None, history(prices=[50.0, 100.0, 103.0]), MIDDAY)
    assert momentum_pct(ctx) == pytest.approx(3.0)
    assert momentum_pct(build_context(snap(), None, [], MIDDAY)) is None


def test_volume_increase_pct_example():
    ctx = build_context(snap(volume=3_000_000), None, history(volumes=[900_000]), MIDDAY)
    assert volume_increase_pct(ctx) == pytest.approx(233.333, rel=1e-4)


def test_rule_table_keys_are_unique():
    keys = [r.key for r in DEFAULT_RULES]
    assert len(keys) == len(set(keys)) == 4
