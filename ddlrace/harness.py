"""Race online column type changes against concurrent insert/delete traffic.

Sixteen workers (by default) insert contiguous runs of ``val0`` into a shared
table, pause, and delete them again by ``val0 IN (...)`` while a separate
thread flips ``val0`` between BIGINT and INT once a second. Duplicate keys on
insert and "public column has changed" on delete are expected; any other
delete failure stops the run with exit code 1. Run ``ddlrace --help`` for the
available options.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigError, HarnessConfig, load_harness_config, validate_config
from .errors import SetupError, StoreError
from .pool import WorkerPool
from .stats import BENIGN, ERROR, SUCCESS, RaceStats
from .store import ManagedStore, MySQLStore


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Build the CLI parser for the harness entry point."""
    parser = argparse.ArgumentParser(prog="ddlrace", description=__doc__)
    parser.add_argument("--config", help="Path to a TOML config file (optional).")
    parser.add_argument("--host", help="Database host (overrides config).")
    parser.add_argument("--port", type=int, help="Database port (overrides config).")
    parser.add_argument("--user", help="Database user (overrides config).")
    parser.add_argument("--password", help="Database password (overrides config).")
    parser.add_argument("--database", help="Schema holding the race table (overrides config).")
    parser.add_argument("--workers", type=int, help="Number of insert/delete workers.")
    parser.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (default: run until interrupted).",
    )
    parser.add_argument("--seed", type=int, help="Seed the per-worker random sources.")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR.")
    parser.add_argument("--log-file", help="Also write the log to this file.")
    parser.add_argument(
        "--no-schema-changes",
        action="store_true",
        help="Run the DML workers without the column type flipper.",
    )
    return parser.parse_args(argv)


def apply_cli_overrides(config: HarnessConfig, args: argparse.Namespace) -> None:
    """Copy any values given on the command line onto the loaded config."""
    for attr in ("host", "port", "user", "password", "database"):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(config.connection, attr, value)
    if args.workers is not None:
        config.workload.workers = args.workers
    if args.seed is not None:
        config.workload.seed = args.seed
    if args.duration is not None:
        config.run.duration = args.duration
    if args.log_level is not None:
        config.run.log_level = args.log_level
    if args.log_file is not None:
        config.run.log_file = args.log_file
    if args.no_schema_changes:
        config.schema.enabled = False


def configure_logging(log_level: str, log_file: Optional[str] = None) -> Optional[Path]:
    """Set up logging to stdout and, when requested, tee the stream to a log file."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_path: Optional[Path] = None
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=handlers,
        force=True,
    )
    return log_path


def log_summary(stats: RaceStats) -> None:
    snapshot = stats.snapshot()
    if not snapshot:
        logging.info("No statements were issued")
        return
    logging.info("Race summary:")
    for op in ("insert", "delete", "alter"):
        success = snapshot.get((op, SUCCESS), 0)
        benign = snapshot.get((op, BENIGN), 0)
        errors = snapshot.get((op, ERROR), 0)
        if success or benign or errors:
            logging.info("  %s: success=%d benign=%d error=%d", op, success, benign, errors)


def install_signal_handlers(stop_event: threading.Event) -> None:
    def handle(signum: int, _frame: object) -> None:
        logging.warning("Received %s; stopping workers", signal.Signals(signum).name)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, handle)


def run_harness(
    config: HarnessConfig,
    store: ManagedStore,
    *,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """Bootstrap the table, run the workers until stopped, and return an exit code."""
    conn = config.connection
    logging.info(
        "Target %s:%s `%s`.`%s` workers=%d schema_changes=%s duration=%s",
        conn.host,
        conn.port,
        conn.database,
        config.setup.table,
        config.workload.workers,
        "on" if config.schema.enabled else "off",
        f"{config.run.duration:.1f}s" if config.run.duration else "unlimited",
    )

    try:
        store.ping()
        logging.info("Successfully connected to %s:%s", conn.host, conn.port)
        store.setup(conn.database, config.setup)
    except (SetupError, StoreError) as exc:
        logging.error("Failed to set up database: %s", exc)
        return 1

    pool = WorkerPool(config, store, stop_event=stop_event)
    start_time = time.time()
    pool.start()
    pool.join(config.run.duration)
    elapsed = time.time() - start_time

    log_summary(pool.stats)
    logging.info("Elapsed %.1fs", elapsed)

    if pool.errors:
        label, exc = pool.errors[0]
        logging.error("%s encountered an error: %s", label, exc)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Top-level harness entry point."""
    args = parse_args(argv)
    config_path = Path(args.config).expanduser() if args.config else None

    try:
        config = load_harness_config(config_path)
        apply_cli_overrides(config, args)
        validate_config(config)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    log_path = configure_logging(config.run.log_level, config.run.log_file)
    if log_path:
        logging.info("Logging to %s", log_path)
    if config.path:
        logging.info("Loaded config %s", config.path)

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    store = MySQLStore(config.connection)
    try:
        return run_harness(config, store, stop_event=stop_event)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
