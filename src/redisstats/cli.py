"""Command line entry point: ``redisstats run|sample|trim``."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from redisstats.adapters.retrieval import RedisInfoSource
from redisstats.adapters.storage import RedisSampleStore
from redisstats.core.config import StatsConfig, load_config
from redisstats.core.errors import ConfigurationError
from redisstats.core.models import MonitoredServer
from redisstats.core.ports import SampleStorePort
from redisstats.services.monitor import StatsMonitor

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "REDISSTATS_CONFIG"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redisstats",
        description="Sample Redis INFO into raw, hourly and daily series.",
    )
    parser.add_argument(
        "command",
        choices=("run", "sample", "trim"),
        help="run both periodic tasks, or run a single sampling/retention pass",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=os.environ.get(CONFIG_ENV_VAR),
        help=f"TOML or JSON config file (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser


def _open_stores(
    config: StatsConfig,
) -> dict[MonitoredServer, SampleStorePort]:
    """One store per server, or one shared store when ``store`` is configured."""
    if config.store is not None:
        shared = RedisSampleStore.for_server(config.store, **config.redis_options)
        return {server: shared for server in config.servers}
    return {
        server: RedisSampleStore.for_server(server, **config.redis_options)
        for server in config.servers
    }


async def _main(command: str, config: StatsConfig) -> int:
    source = RedisInfoSource(
        config.servers, config.redis_options, timeout=config.retrieval_timeout
    )
    stores = _open_stores(config)
    monitor = StatsMonitor(config, source, stores.__getitem__)
    try:
        if command == "sample":
            reports = await monitor.sample_once()
            for report in reports:
                status = "ok" if report.ok else f"error: {report.error or 'store'}"
                print(
                    f"{report.server.label}: {report.metrics} metrics, "
                    f"{report.record.written} writes ({status})"
                )
            return 0 if all(r.ok for r in reports) else 1
        if command == "trim":
            report = await monitor.trim_once()
            print(f"removed {report.total_removed} entries")
            return 0 if not report.failures else 1
        async with monitor:
            await asyncio.Event().wait()
        return 0
    finally:
        await source.close()
        for store in {id(s): s for s in stores.values()}.values():
            await store.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, load the config and run the requested command."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.config:
        print(
            f"redisstats: no config given (use --config or ${CONFIG_ENV_VAR})",
            file=sys.stderr,
        )
        return 2
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"redisstats: {e}", file=sys.stderr)
        return 2
    try:
        return asyncio.run(_main(args.command, config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
