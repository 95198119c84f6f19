from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Sequence

import structlog

from triage.alerts.engine import generate_alerts
from triage.alerts.models import Alert
from triage.alerts.notifiers import ConsoleNotifier
from triage.alerts.placeholder import placeholder_alerts
from triage.alerts.state import SnapshotBook
from triage.alerts.store import AlertStore
from triage.utils.time import local_now
from triage.utils.types import IntervalPoint, Snapshot

log = structlog.get_logger("refresh")


class QuoteFetcher(Protocol):
    async def fetch_snapshots(self, api_key: str, symbols: list[str]) -> list[Snapshot]: ...
    async def fetch_history(self, api_key: str, symbol: str) -> list[IntervalPoint]: ...


class AlertSink(Protocol):
    def write_alert(self, alert: Alert) -> None: ...
    def write_snapshot(self, snap: Snapshot) -> None: ...


@dataclass(slots=True)
class RefreshConfig:
    api_key: str
    symbols: list[str]
    interval_s: float = 60.0
    fetch_history: bool = True


@dataclass(slots=True)
class CycleResult:
    started: datetime
    snapshots: int = 0
    generated: int = 0
    added: list[Alert] = field(default_factory=list)
    fallback: bool = False


class RefreshLoop:
    """
    The single refresh routine: Fetcher -> Rule Engine -> book update -> Store merge.

    Cycles never overlap. Timer ticks (every interval_s) and explicit
    trigger()/refresh() calls go through the same lock; a request that
    arrives while a cycle is running is dropped (collapsed), not queued.

    A cycle that gets no snapshots merges the fixed placeholder alert set.
    """
    def __init__(
        self,
        cfg: RefreshConfig,
        fetcher: QuoteFetcher,
        store: Optional[AlertStore] = None,
        book: Optional[SnapshotBook] = None,
        notifier: Optional[ConsoleNotifier] = None,
        mirror: Optional[AlertSink] = None,
    ):
        self.cfg = cfg
        self.fetcher = fetcher
        self.store = store if store is not None else AlertStore()
        self.book = book if book is not None else SnapshotBook()
        self.notifier = notifier
        self.mirror = mirror

        self._lock = asyncio.Lock()
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self.cycles = 0
        self.collapsed = 0

    # ---------------------------- public API ---------------------------- #

    @property
    def running_cycle(self) -> bool:
        return self._lock.locked()

    async def refresh(self) -> Optional[CycleResult]:
        """Run one cycle now; returns None if a cycle was already in progress."""
        if self._lock.locked():
            self.collapsed += 1
            log.info("refresh_collapsed", collapsed=self.collapsed)
            return None
        async with self._lock:
            return await self._cycle()

    def trigger(self) -> None:
        """Ask the run() loop for an immediate refresh."""
        self._wake.set()

    async def run(self) -> None:
        self._stop.clear()
        while not self._stop.is_set():
            try:
                await self.refresh()
            except Exception as e:
                log.warning("refresh_cycle_failed", err=str(e), err_type=type(e).__name__)
            self._wake.clear()
            if self._stop.is_set():
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.cfg.interval_s)
            except asyncio.TimeoutError:
                pass
        log.info("refresh_loop_exit", cycles=self.cycles)

    async def stop(self) -> None:
        # takes effect between cycles; an in-flight cycle runs to completion
        self._stop.set()
        self._wake.set()

    # --------------------------- core internals ------------------------- #

    async def _fetch(self) -> tuple[list[Snapshot], dict[str, list[IntervalPoint]]]:
        if not self.cfg.api_key:
            return [], {}
        snapshots = await self.fetcher.fetch_snapshots(self.cfg.api_key, self.cfg.symbols)
        histories: dict[str, list[IntervalPoint]] = {}
        if self.cfg.fetch_history:
            for snap in snapshots:
                hist = await self.fetcher.fetch_history(self.cfg.api_key, snap.symbol)
                if hist:
                    histories[snap.symbol] = hist
        return snapshots, histories

    def _history_for_engine(self, fresh: dict[str, list[IntervalPoint]]) -> dict[str, Sequence[IntervalPoint]]:
        # fresh series win; symbols whose history call failed keep the last known one
        merged: dict[str, Sequence[IntervalPoint]] = dict(self.book.history_by_symbol())
        merged.update(fresh)
        return merged

    async def _cycle(self) -> CycleResult:
        self.cycles += 1
        res = CycleResult(started=local_now())
        snapshots, histories = await self._fetch()
        res.snapshots = len(snapshots)

        if not snapshots:
            res.fallback = True
            batch = placeholder_alerts()
            log.warning("refresh_no_data_using_placeholder", live=bool(self.cfg.api_key))
        else:
            batch = generate_alerts(
                snapshots,
                self.book.previous_by_symbol(),
                self._history_for_engine(histories),
                now=res.started,
            )
            self.book.update(snapshots, histories)

        res.generated = len(batch)
        res.added = self.store.merge(batch)
        await self._publish(snapshots, res.added)
        log.info(
            "refresh_cycle_done",
            cycle=self.cycles,
            snapshots=res.snapshots,
            generated=res.generated,
            added=len(res.added),
            total=len(self.store),
            fallback=res.fallback,
        )
        return res

    async def _publish(self, snapshots: list[Snapshot], added: list[Alert]) -> None:
        if self.mirror is not None:
            for snap in snapshots:
                self.mirror.write_snapshot(snap)
            for a in added:
                self.mirror.write_alert(a)
        if self.notifier is not None:
            for a in added:
                await self.notifier.send(a)
