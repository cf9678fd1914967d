"""Workload replay entry point.

Run with: python -m src.main path/to/workload.txt [--log-level DEBUG]
"""

import logging
import sys
from datetime import timedelta
from pathlib import Path

import click
import uvloop

from config.settings import Settings, settings
from src.dt_account.domain.ledger import AccountLedger
from src.dt_audit.domain.sink import AuditSinkProtocol
from src.dt_audit.infrastructure.xml_log import XmlAuditLog
from src.dt_autorequest.engine.engine import AutoRequestEngine
from src.dt_command.application.executor import Executor
from src.dt_command.application.parser import iter_workload
from src.dt_command.application.schemas import ReplayStats
from src.dt_common.datetime_utils import Clock, utc_now
from src.dt_quote.application.cache import QuoteCache
from src.dt_quote.domain.repository import QuoteSourceProtocol
from src.dt_quote.infrastructure.quote_client import QuoteClient

logger = logging.getLogger("dt.main")

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"


def build_executor(
    cfg: Settings,
    audit: AuditSinkProtocol | None = None,
    source: QuoteSourceProtocol | None = None,
    clock: Clock = utc_now,
) -> Executor:
    """Wire the services for one replay run."""
    ledger = AccountLedger(clock=clock)
    autorequests = AutoRequestEngine(
        ledger,
        clock=clock,
        sell_trigger_reserves_shares=cfg.SELL_TRIGGER_RESERVES_SHARES,
        cancel_set_sell_returns_shares=cfg.CANCEL_SET_SELL_RETURNS_SHARES,
    )
    quotes = QuoteCache(
        source
        or QuoteClient(cfg.quote_server_host, cfg.QUOTE_SERVER_PORT, cfg.QUOTE_TIMEOUT_SECONDS),
        clock=clock,
        validity=timedelta(seconds=cfg.QUOTE_VALIDITY_SECONDS),
        audit=audit,
    )
    quotes.subscribe(autorequests.on_fresh_quote)
    return Executor(
        ledger,
        quotes,
        autorequests,
        audit=audit,
        clock=clock,
        order_validity=timedelta(seconds=cfg.ORDER_VALIDITY_SECONDS),
        refund_expired_orders=cfg.REFUND_EXPIRED_ORDERS,
        verify_invariants=cfg.VERIFY_INVARIANTS,
    )


async def run_workload(path: Path, cfg: Settings) -> ReplayStats:
    audit = XmlAuditLog.open_in_dir(cfg.AUDIT_LOG_DIR, server=cfg.SERVERNAME)
    try:
        executor = build_executor(cfg, audit)
        logger.info("Opened %s", path)
        return await executor.replay(iter_workload(path))
    finally:
        audit.close()


@click.command()
@click.argument("workload", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default=None,
    help="Overrides LOG_LEVEL from the environment.",
)
def cli(workload: Path, log_level: str | None) -> None:
    """Replay a day-trading WORKLOAD file against in-memory accounts."""
    logging.basicConfig(level=(log_level or settings.LOG_LEVEL).upper(), format=_LOG_FORMAT)

    if not workload.exists():
        logger.critical("Workload file not found: %s", workload)
        sys.exit(1)
    try:
        stats = uvloop.run(run_workload(workload, settings))
    except OSError as exc:
        logger.critical("Could not read workload %s: %s", workload, exc)
        sys.exit(1)

    logger.info("Done!")
    click.echo(
        f"processed={stats.processed} failed={stats.failed} skipped={stats.skipped}"
    )


if __name__ == "__main__":
    cli()
