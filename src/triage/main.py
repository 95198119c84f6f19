# src/triage/main.py
import asyncio

import structlog
from dotenv import load_dotenv

from triage.config import config_from_env
from triage.ingest.alpha_vantage import AlphaVantageClient, AlphaVantageConfig
from triage.alerts.formatting import format_alert_pretty
from triage.alerts.notifiers import ConsoleNotifier
from triage.alerts.store import AlertStore
from triage.service.refresh import RefreshConfig, RefreshLoop
from triage.utils.log_setup import configure_logging

# Storage helpers
from storage.export import export_alerts
from storage.redis_alerts import RedisMirror

load_dotenv()
log = structlog.get_logger()


async def main():
    cfg = config_from_env()
    configure_logging(cfg.log_level)

    client = AlphaVantageClient(
        AlphaVantageConfig(pacing_s=cfg.pacing_s, timeout_s=cfg.http_timeout_s),
    )
    await client.start()

    # An unusable key degrades to placeholder data instead of failing startup.
    api_key = cfg.api_key
    if api_key:
        check = await client.validate_api_key(api_key)
        log.info("api_key_checked", result=check)
        if check == "invalid":
            api_key = ""
    else:
        log.info("no_api_key_using_placeholder_data")

    mirror = RedisMirror(url=cfg.redis_url, enabled=cfg.redis_mirror)
    store = AlertStore(sink=mirror)
    await mirror.start()

    loop = RefreshLoop(
        RefreshConfig(api_key=api_key, symbols=cfg.symbols, interval_s=cfg.refresh_interval_s),
        fetcher=client,
        store=store,
        notifier=ConsoleNotifier(format_fn=lambda a: format_alert_pretty(a, cfg.display_tz)),
        mirror=mirror,
    )
    log.info("triage_started", symbols=cfg.symbols, live=bool(api_key), interval_s=cfg.refresh_interval_s)

    try:
        await loop.run()
    finally:
        await loop.stop()
        m = store.metrics()
        log.info(
            "triage_shutdown",
            total=m.total_alerts,
            pending=m.pending_review,
            false_positive_rate=m.false_positive_rate,
            avg_investigation_minutes=m.avg_investigation_minutes,
        )
        if len(store):
            path = export_alerts(store.view(), cfg.export_dir)
            log.info("alerts_exported", path=str(path), count=len(store))
        await mirror.stop()
        await client.stop()


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
