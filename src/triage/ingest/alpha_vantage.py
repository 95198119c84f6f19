from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import aiohttp
import structlog

from triage.errors import ProviderError, RateLimitNotice
from triage.ingest import parser
from triage.utils.types import IntervalPoint, KeyCheck, Snapshot

log = structlog.get_logger("alpha_vantage")

API_BASE_URL = "https://www.alphavantage.co/query"
KEY_PROBE_SYMBOL = "AAPL"

# --------- call pacing ----------

class Pacer:
    """
    Enforces a minimum spacing between provider calls.
    Free tier allows 5 calls per rolling minute -> 12s between calls.
    Callers are serialized on a lock, so calls never overlap.
    """
    def __init__(self, min_interval_s: float):
        self.min_interval_s = float(min_interval_s)
        self._last: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self._last is not None:
                wait = self._last + self.min_interval_s - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last = loop.time()

# --------- config & client ----------

@dataclass(slots=True)
class AlphaVantageConfig:
    base_url: str = API_BASE_URL
    pacing_s: float = 12.0          # 60s / 5 calls
    timeout_s: float = 10.0
    intraday_interval: str = "15min"
    history_points: int = 10


class AlphaVantageClient:
    """
    Quote snapshot fetcher.

    Every provider problem (network error, bad key, rate-limit note, malformed
    payload) is logged and reported as "no data"; nothing raises out of the
    fetch_* methods.

    Usage:
        async with AlphaVantageClient(AlphaVantageConfig()) as av:
            snaps = await av.fetch_snapshots(api_key, ["AAPL", "TSLA"])
    """
    def __init__(self, cfg: Optional[AlphaVantageConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg or AlphaVantageConfig()
        self._session = session
        self._owns_session = session is None
        self._pacer = Pacer(self.cfg.pacing_s)

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def stop(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AlphaVantageClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ---------------------------- public API ---------------------------- #

    async def fetch_quote(self, api_key: str, symbol: str) -> Optional[Snapshot]:
        try:
            data = await self._get({"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": api_key})
            snap = parser.parse_global_quote(data, symbol)
        except RateLimitNotice as e:
            log.warning("quote_rate_limited", symbol=symbol, note=str(e))
            return None
        except ProviderError as e:
            log.error("quote_provider_error", symbol=symbol, err=str(e))
            return None
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error("quote_fetch_failed", symbol=symbol, err=str(e))
            return None
        if snap is None:
            log.warning("quote_empty", symbol=symbol)
        return snap

    async def fetch_snapshots(self, api_key: str, symbols: list[str]) -> list[Snapshot]:
        """
        One snapshot per symbol that could be retrieved, in request order.
        Calls are sequential and paced; failed symbols are skipped.
        """
        out: list[Snapshot] = []
        for sym in symbols:
            snap = await self.fetch_quote(api_key, sym)
            if snap is not None:
                out.append(snap)
        log.info("snapshots_fetched", requested=len(symbols), received=len(out))
        return out

    async def fetch_history(self, api_key: str, symbol: str) -> list[IntervalPoint]:
        """Up to `history_points` recent intraday points, oldest first; [] on any error."""
        params = {
            "function": "TIME_SERIES_INTRADAY",
            "symbol": symbol,
            "interval": self.cfg.intraday_interval,
            "apikey": api_key,
        }
        try:
            data = await self._get(params)
            return parser.parse_intraday(data, symbol, limit=self.cfg.history_points)
        except ProviderError as e:
            log.warning("history_unavailable", symbol=symbol, err=str(e))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error("history_fetch_failed", symbol=symbol, err=str(e))
        return []

    async def validate_api_key(self, api_key: str) -> KeyCheck:
        """Probe the provider with a single quote call and classify the key."""
        key = (api_key or "").strip()
        if not key:
            return "invalid"
        try:
            data = await self._get({"function": "GLOBAL_QUOTE", "symbol": KEY_PROBE_SYMBOL, "apikey": key})
            parser.check_payload(data)
        except RateLimitNotice:
            return "rate_limited"
        except ProviderError:
            return "invalid"
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("api_key_probe_failed", err=str(e))
            return "unreachable"
        return "ok"

    # --------------------------- core internals ------------------------- #

    async def _get(self, params: dict) -> dict:
        await self.start()
        assert self._session is not None
        await self._pacer.acquire()
        async with self._session.get(self.cfg.base_url, params=params) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)
