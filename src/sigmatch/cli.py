import logging
import time
from collections.abc import Callable
from pathlib import Path

import click
import pyarrow as pa
import pyarrow.parquet as pq
from rich.console import Console
from rich.logging import RichHandler

from sigmatch.core.config import MatcherConfig, get_config, load_config
from sigmatch.core.errors import MatcherError
from sigmatch.engines import make_engine
from sigmatch.matching import (
    count_matches,
    match_logs_by_topic0,
    match_logs_by_topic0_address,
    match_traces_by_4bytes,
    match_traces_by_4bytes_address,
)

console = Console()

Matcher = Callable[..., pa.Table]


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("sigmatch")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False))
    logger.propagate = False


def _resolve_config(config_path: str | None, engine: str | None) -> MatcherConfig:
    config = load_config(config_path) if config_path else get_config()
    if engine:
        config = config.model_copy(update={"engine": engine})
    return config


def _run(matcher: Matcher, records: str, abi: str, out: str, config: MatcherConfig, label: str) -> None:
    t0 = time.time()
    table = matcher(pq.read_table(records), pq.read_table(abi), config=config, engine=make_engine(config))
    Path(out).parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, out, compression="zstd")
    stats = count_matches(table)
    elapsed = time.time() - t0
    console.print(f"[bold]done[/]: {stats.rows} {label} → {out} • {elapsed:.2f}s")
    console.print(
        f"[bold]summary[/]: "
        f"[green]matched[/]={stats.matched}  "
        f"[red]unmatched[/]={stats.unmatched}  "
        f"(engine={config.engine})"
    )


def _common_options(fn: Callable) -> Callable:
    for option in reversed(
        [
            click.option("--abi", required=True, type=click.Path(exists=True, dir_okay=False), help="ABI catalog Parquet file"),
            click.option("--out", required=True, type=click.Path(dir_okay=False), help="Output Parquet file"),
            click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="TOML matcher config"),
            click.option("--engine", type=click.Choice(["arrow", "duckdb"]), default=None, help="Override the configured engine"),
            click.option(
                "--address-only/--with-fallback",
                default=False,
                show_default=True,
                help="Skip the frequency fallback stage",
            ),
            click.option("-v", "--verbose", is_flag=True, help="Debug logging"),
        ]
    ):
        fn = option(fn)
    return fn


@click.group()
def cli() -> None:
    """sigmatch: resolve raw logs and traces to ABI signatures."""


@cli.command("match-logs")
@click.option("--logs", "records", required=True, type=click.Path(exists=True, dir_okay=False), help="Raw logs Parquet file")
@_common_options
def match_logs_cmd(
    records: str,
    abi: str,
    out: str,
    config_path: str | None,
    engine: str | None,
    address_only: bool,
    verbose: bool,
) -> None:
    """Match raw event logs against an ABI catalog."""
    _setup_logging(verbose)
    try:
        config = _resolve_config(config_path, engine)
        matcher = match_logs_by_topic0_address if address_only else match_logs_by_topic0
        _run(matcher, records, abi, out, config, "logs")
    except (MatcherError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@cli.command("match-traces")
@click.option("--traces", "records", required=True, type=click.Path(exists=True, dir_okay=False), help="Raw traces Parquet file")
@_common_options
def match_traces_cmd(
    records: str,
    abi: str,
    out: str,
    config_path: str | None,
    engine: str | None,
    address_only: bool,
    verbose: bool,
) -> None:
    """Match raw call traces against an ABI catalog."""
    _setup_logging(verbose)
    try:
        config = _resolve_config(config_path, engine)
        matcher = match_traces_by_4bytes_address if address_only else match_traces_by_4bytes
        _run(matcher, records, abi, out, config, "traces")
    except (MatcherError, ValueError) as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    cli()
