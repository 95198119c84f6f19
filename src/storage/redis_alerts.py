from __future__ import annotations

import asyncio
import json
from typing import Optional

import redis.asyncio as redis
import structlog

from triage.alerts.models import Alert, alert_to_dict
from triage.utils.time import epoch_ms
from triage.utils.types import Snapshot

log = structlog.get_logger("redis_mirror")

ALERT_KEY_PREFIX = "triage:alert:"
ALERT_INDEX_KEY = "triage:alerts"

def alert_key(alert_id: str) -> str:
    return f"{ALERT_KEY_PREFIX}{alert_id}"

def ts_key(symbol: str, field: str) -> str:
    # ts:{SYM}:{FIELD}
    return f"ts:{symbol}:{field}"

class RedisMirror:
    """
    Optional Redis mirror of the alert store and fetched snapshots.
    Non-blocking best-effort writes: producers enqueue, a single writer task
    drains. Under pressure items are dropped; write errors are logged and skipped.

      alerts    -> SET triage:alert:{id} <json>, ZADD triage:alerts <epoch_ms> <id>
      snapshots -> TS.ADD ts:{SYM}:price / ts:{SYM}:volume (RedisTimeSeries)
    """
    def __init__(self, url: str, retention_ms: int = 24 * 60 * 60 * 1000, enabled: bool = False):
        self.enabled = enabled
        self.url = url
        self.retention_ms = retention_ms
        self._r: Optional[redis.Redis] = None
        self._q: asyncio.Queue = asyncio.Queue(maxsize=5000)
        self._task: Optional[asyncio.Task] = None
        self.dropped = 0

    async def start(self):
        if not self.enabled:
            return
        self._r = redis.from_url(self.url, decode_responses=True)
        self._task = asyncio.create_task(self._writer_loop(), name="redis-mirror")

    async def stop(self):
        if not self.enabled:
            return
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._r:
            await self._r.close()

    def write_alert(self, alert: Alert) -> None:
        """Enqueue the alert's current state (status/notes/timeline included).

        Called on merge and again by AlertStore after every workflow transition.
        """
        if not self.enabled:
            return
        self._put(("alert", alert.id, epoch_ms(alert.timestamp), json.dumps(alert_to_dict(alert))))

    def write_snapshot(self, snap: Snapshot) -> None:
        if not self.enabled:
            return
        self._put(("snapshot", snap.symbol, epoch_ms(snap.timestamp), snap.price, snap.volume))

    def _put(self, item: tuple) -> None:
        try:
            self._q.put_nowait(item)
        except asyncio.QueueFull:
            self.dropped += 1

    def _queue_commands(self, p, item: tuple) -> None:
        kind = item[0]
        if kind == "alert":
            _, alert_id, ts_ms, payload = item
            p.execute_command("SET", alert_key(alert_id), payload)
            p.execute_command("ZADD", ALERT_INDEX_KEY, ts_ms, alert_id)
            return
        _, symbol, ts_ms, price, volume = item
        key_px = ts_key(symbol, "price")
        key_v = ts_key(symbol, "volume")
        # create-if-missing with retention (errors on existing keys are ignored)
        p.execute_command("TS.CREATE", key_px, "RETENTION", self.retention_ms, "DUPLICATE_POLICY", "LAST", "LABELS", "symbol", symbol, "metric", "price")
        p.execute_command("TS.CREATE", key_v, "RETENTION", self.retention_ms, "DUPLICATE_POLICY", "LAST", "LABELS", "symbol", symbol, "metric", "volume")
        p.execute_command("TS.ADD", key_px, ts_ms, price)
        p.execute_command("TS.ADD", key_v, ts_ms, volume)

    async def _writer_loop(self):
        assert self._r is not None
        r = self._r
        try:
            while True:
                item = await self._q.get()
                p = r.pipeline()
                self._queue_commands(p, item)
                try:
                    await p.execute(raise_on_error=False)
                except Exception as e:
                    log.warning("redis_mirror_write_failed", kind=item[0], key=item[1], err=str(e))
        except asyncio.CancelledError:
            return
