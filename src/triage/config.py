from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_SYMBOLS = "AAPL,TSLA,NVDA,MSFT,AMZN"

@dataclass(slots=True)
class TriageConfig:
    """
    Runtime settings, read from the environment (and .env via python-dotenv).

    api_key:          Alpha Vantage key; blank -> placeholder data only
    refresh_interval_s: period of the refresh timer
    pacing_s:         minimum spacing between provider calls (5 calls/min -> 12s)
    """
    api_key: str = ""
    symbols: list[str] = field(default_factory=lambda: _split_symbols(DEFAULT_SYMBOLS))
    refresh_interval_s: float = 60.0
    pacing_s: float = 12.0
    http_timeout_s: float = 10.0
    export_dir: str = "exports"
    redis_url: str = "redis://localhost:6379/0"
    redis_mirror: bool = False
    log_level: str = "INFO"
    display_tz: str = "America/New_York"

    @property
    def live(self) -> bool:
        return bool(self.api_key)

def _split_symbols(raw: str) -> list[str]:
    return [s.strip().upper() for s in raw.split(",") if s.strip()]

def _flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")

def _positive(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        v = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if v < 0:
        raise ValueError(f"{name} must be >= 0, got {v}")
    return v

def config_from_env(env: Optional[Mapping[str, str]] = None) -> TriageConfig:
    env = os.environ if env is None else env
    d = TriageConfig()
    return TriageConfig(
        api_key=env.get("ALPHA_VANTAGE_API_KEY", "").strip(),
        symbols=_split_symbols(env.get("SYMBOLS", DEFAULT_SYMBOLS)),
        refresh_interval_s=_positive(env, "REFRESH_SECONDS", d.refresh_interval_s),
        pacing_s=_positive(env, "PACING_SECONDS", d.pacing_s),
        http_timeout_s=_positive(env, "HTTP_TIMEOUT_SECONDS", d.http_timeout_s),
        export_dir=env.get("EXPORT_DIR", d.export_dir),
        redis_url=env.get("REDIS_URL", d.redis_url),
        redis_mirror=_flag(env.get("REDIS_MIRROR")),
        log_level=env.get("LOG_LEVEL", d.log_level).upper(),
        display_tz=env.get("DISPLAY_TZ", d.display_tz),
    )
