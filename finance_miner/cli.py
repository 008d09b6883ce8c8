"""
finance-miner command line.

Download the Finam emitent catalog, resolve each emitent's trading code and
market from its profile page, and print the result as a table.

Workflow:
1. Load config (packaged defaults, optional YAML file, ``--set`` overrides).
2. Build the HTTP adapter and download/assemble the catalog.
3. Optionally truncate to the first ``--limit`` emitents.
4. Resolve profiles through the rate-limited worker pool.
5. Render a rich table and a run summary.

Exit status: 0 on success, 1 on configuration errors, 2 when the catalog
cannot be obtained, 130 when interrupted.

Usage:
    finance-miner --limit 3
    finance-miner --workers 2 --rate 0.5 --set sources.finam.http.default_timeout=10
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional, Sequence

from omegaconf import DictConfig
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from finance_miner.bootstrap import build_http_adapter, build_rate_limiter
from finance_miner.common.errors import ConfigError, MinerError
from finance_miner.config.config import (
    ensure_finam_config,
    finam_batch_view,
    finam_view,
    load_config,
)
from finance_miner.sources.finam.batch.core import BatchStats, EntryResult
from finance_miner.sources.finam.batch.run import run_batch
from finance_miner.sources.finam.catalog.discover import build_catalog
from finance_miner.sources.finam.common.models import Emitent

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_CATALOG = 2
EXIT_INTERRUPTED = 130

logger = logging.getLogger("finance_miner")


def configure_logging(level: str, console: Console) -> None:
    """Attach a RichHandler to the package logger (idempotent)."""
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(console=console, show_path=False, rich_tracebacks=False)
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finance-miner",
        description="Stocks market financial data miner (Finam emitents).",
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file.")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Config override in dotlist form (repeatable).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only resolve the first N emitents of the catalog.",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Concurrent profile fetches."
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=None,
        help="Profile requests per second across all workers.",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Print one JSON line per resolved emitent instead of a table.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    return parser


def render_table(emitents: Sequence[Emitent], stats: BatchStats) -> Table:
    table = Table(
        title=f"Finam emitents (ok={stats.ok} skip={stats.skip} err={stats.err})"
    )
    table.add_column("Id", style="cyan", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Market id", justify="right")
    table.add_column("Market", style="green")
    table.add_column("Code", style="bold")
    table.add_column("Uri", style="dim")
    for e in emitents:
        table.add_row(e.id, e.name, e.market_id, e.market_name, e.code, e.uri)
    return table


def _resolve_limit(cfg: DictConfig, cli_limit: Optional[int]) -> Optional[int]:
    if cli_limit is not None:
        return cli_limit
    limit = finam_batch_view(cfg).limit
    return None if limit is None else int(limit)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    err_console: Optional[Console] = None,
) -> int:
    args = build_parser().parse_args(argv)
    out = console or Console()
    err = err_console or Console(stderr=True)
    configure_logging(args.log_level, err)

    # 1) Config
    try:
        cfg = load_config(args.config, overrides=args.overrides)
        ensure_finam_config(cfg)
        finam = finam_view(cfg)
        workers = (
            args.workers
            if args.workers is not None
            else int(finam_batch_view(cfg).workers)
        )
        if workers < 1:
            raise ConfigError(f"workers must be >= 1, got {workers}")
        limiter = build_rate_limiter(cfg, rate_per_second=args.rate)
        adapter = build_http_adapter(cfg, logger=logger)
    except (MinerError, FileNotFoundError, ValueError) as exc:
        err.print(f"[bold red]Configuration error:[/bold red] {exc}")
        return EXIT_CONFIG

    with adapter:
        # 2) Catalog; without it there is nothing to resolve
        try:
            emitents = build_catalog(adapter, str(finam.catalog_url), logger=logger)
        except MinerError as exc:
            logger.error("Cannot build emitent catalog: %s", exc)
            err.print(f"[bold red]{exc}[/bold red]")
            return EXIT_CATALOG
        logger.info("Catalog holds %s emitents", len(emitents))
        logger.info(
            "Profile requests limited to %.4g/s (burst %s) across %s workers",
            limiter.rate,
            limiter.capacity,
            workers,
        )

        # 3) Limit
        limit = _resolve_limit(cfg, args.limit)
        if limit is not None:
            emitents = emitents[: max(0, limit)]

        # 4) Profiles
        def _print_plain(result: EntryResult) -> None:
            if result.status == "ok":
                out.print(
                    json.dumps(result.emitent.to_dict(), ensure_ascii=False),
                    markup=False,
                    highlight=False,
                    soft_wrap=True,
                )

        try:
            stats = run_batch(
                adapter,
                emitents,
                base_url=str(finam.profiles_base_url),
                workers=workers,
                limiter=limiter,
                on_result=_print_plain if args.plain else None,
                logger=logger,
            )
        except KeyboardInterrupt:
            err.print("[yellow]Interrupted[/yellow]")
            return EXIT_INTERRUPTED

    # 5) Report
    if not args.plain:
        out.print(render_table(stats.emitents, stats))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
