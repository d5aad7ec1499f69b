#!/usr/bin/env python3
"""
rvol CLI

Command-line interface for the realized-volatility oracle.

Usage:
    rvol show-config [--config FILE]
    rvol simulate <prices_file> [--config FILE] [--period N] [--window N]
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .. import __version__
from .. import logger as rvol_logger
from ..config import RvolConfig, load_config
from ..exceptions import ConfigurationError, RvolException
from ..oracle import ManualClock, OracleConfig, VolOracle
from ..oracle.welford import stdev
from ..pool import PoolRegistry

# Simulated ETH/USDC pair
SIM_BASE = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
SIM_QUOTE = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
SIM_BASE_DECIMALS = 18
SIM_QUOTE_DECIMALS = 6
SIM_EPOCH = 1_700_000_000

def _console() -> Console:
    return Console()


def _load(config_path: Optional[str]) -> RvolConfig:
    cfg = load_config(config_path)
    try:
        cfg.validate()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    return cfg


def _setup_logging(cfg: RvolConfig) -> None:
    rvol_logger.configure(
        log_level=cfg.logging.level,
        log_file=Path(cfg.logging.log_file),
        file_output=cfg.logging.file_output,
    )


def read_prices(path: str) -> List[Decimal]:
    """
    One price per line, first comma-separated column.

    Blank lines and ``#`` comments are skipped; a non-numeric first row is
    treated as a header.
    """
    prices: List[Decimal] = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            cell = line.split(",")[0].strip()
            try:
                price = Decimal(cell)
            except InvalidOperation:
                if not prices:
                    continue
                raise click.ClickException(f"{path}:{lineno}: not a price: {cell!r}")
            if price <= 0:
                raise click.ClickException(f"{path}:{lineno}: price must be positive")
            prices.append(price)
    return prices


def _format_percent(value: int) -> str:
    # 1e8 scale -> percent
    return f"{Decimal(value) / Decimal(10**6):.4f}%"


@click.group()
@click.version_option(version=__version__, prog_name="rvol")
def cli():
    """rvol - realized volatility oracle for AMM pools."""
    pass


@cli.command("show-config")
@click.option("--config", "config_path", type=click.Path(), default=None, help="Path to config.toml")
def show_config(config_path: Optional[str]):
    """Print the resolved configuration."""
    cfg = _load(config_path)
    oracle_cfg = cfg.to_oracle_config()
    data = cfg.to_dict()
    data["oracle"]["annualization_constant"] = oracle_cfg.annualization_constant
    _console().print_json(data=data)


@cli.command()
@click.argument("prices_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_path", type=click.Path(), default=None, help="Path to config.toml")
@click.option("--period", type=int, default=None, help="Override the sampling period (seconds)")
@click.option("--window", type=int, default=None, help="Override the accumulator window size")
def simulate(prices_file: str, config_path: Optional[str], period: Optional[int], window: Optional[int]):
    """Replay one price per period through a simulated pool and oracle."""
    cfg = _load(config_path)
    if period is not None:
        cfg.oracle.period = period
    if window is not None:
        cfg.oracle.window_size = window
    _setup_logging(cfg)
    log = rvol_logger.get_logger("rvol.cli")

    try:
        oracle_cfg: OracleConfig = cfg.to_oracle_config()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    prices = read_prices(prices_file)
    if not prices:
        raise click.ClickException(f"No prices in {prices_file}")

    registry = PoolRegistry()
    registry.register_token(SIM_BASE, SIM_BASE_DECIMALS)
    registry.register_token(SIM_QUOTE, SIM_QUOTE_DECIMALS)
    pool = registry.create_pool(SIM_BASE, SIM_QUOTE)

    p = oracle_cfg.period
    # Observations are written twice per period, `spacing` seconds apart
    spacing = max(1, min(600, p // 4))
    start = (SIM_EPOCH // p + 1) * p
    clock = ManualClock(start - 3 * spacing)

    pool.initialize(registry.tick_for_price(pool.address, SIM_BASE, prices[0]), clock.now(), cardinality=2)
    oracle = VolOracle(registry, pool.address, SIM_BASE, SIM_QUOTE, config=oracle_cfg, clock=clock)
    log.info("Simulating %d periods of %ds on %s", len(prices), p, pool.address)

    table = Table(title=f"rvol simulation ({len(prices)} periods, period={p}s)")
    table.add_column("#", justify="right")
    table.add_column("timestamp (UTC)")
    table.add_column("twap", justify="right")
    table.add_column("count", justify="right")
    table.add_column("mean", justify="right")
    table.add_column("vol", justify="right")
    table.add_column("annualized", justify="right")

    for i, price in enumerate(prices):
        boundary = start + i * p
        tick = registry.tick_for_price(pool.address, SIM_BASE, price)
        pool.set_tick(tick, boundary - 2 * spacing)
        pool.set_tick(tick, boundary - spacing)
        clock.set(boundary)

        try:
            event = oracle.commit(pool.address, sender="rvol-cli")
        except RvolException as e:
            raise click.ClickException(f"Commit {i} failed: {e}")

        period_vol = stdev(event.count, event.m2)
        table.add_row(
            str(i),
            datetime.fromtimestamp(event.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M"),
            f"{Decimal(event.price) / Decimal(10**SIM_QUOTE_DECIMALS):.6f}",
            str(event.count),
            _format_percent(event.mean),
            _format_percent(period_vol),
            _format_percent(period_vol * oracle_cfg.annualization_constant),
        )

    _console().print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
