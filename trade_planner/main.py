"""Trade Planner - risk-aware trade sizing and DCA ladder previews.

CLI entrypoint.
Usage:
    planner preview --balance 1000 --entry 100 --loss 5 [--risk 2] [--dca-levels 3]
    planner check-signal --symbol BTC/USDT --type BUY --confidence 75 [--source ai]
    planner suggest-loss --symbol SOL/USDT --type STRONG_BUY --confidence 85 --balance 1000
"""

from __future__ import annotations

import sys
from decimal import Decimal

import click

from trade_planner.config.settings import Settings
from trade_planner.core.errors import ConfigurationError
from trade_planner.core.models import (
    AutoTradingMode,
    AutoTradingSettings,
    BotConfiguration,
    OrderType,
    PositionSide,
    Signal,
    SignalType,
    TradeLadder,
    TradeValidationResult,
)
from trade_planner.logging.logger import log_event, setup_logging
from trade_planner.risk.constraints import derive_constraints
from trade_planner.risk.validator import validate_ladder
from trade_planner.signals.eligibility import check_signal_eligibility
from trade_planner.sizing.ladder import compute_ladder
from trade_planner.sizing.smart_loss import suggest_loss

_SIGNAL_TYPES = [t.value for t in SignalType]


def _render_ladder(ladder: TradeLadder) -> None:
    click.echo(f"Side:            {ladder.side.value}")
    click.echo(f"Entry price:     {ladder.entry_price:.4f}")
    click.echo(f"Max loss:        {ladder.max_loss_amount:.2f}")
    click.echo(f"Total amount:    {ladder.total_trade_amount:.2f}")
    click.echo(f"Initial order:   {ladder.initial_order_amount:.2f}")
    click.echo(f"DCA reserved:    {ladder.dca_reserved_amount:.2f}")
    click.echo(f"Leveraged:       {ladder.leveraged_amount:.2f}")
    click.echo(f"Stop loss:       {ladder.stop_loss_price:.4f}")
    click.echo(f"Take profit:     {ladder.take_profit_price:.4f}")
    if ladder.levels:
        click.echo("DCA levels:")
        for lvl in ladder.levels:
            click.echo(
                f"  #{lvl.level} step {lvl.percentage}% @ {lvl.target_price:.4f}"
                f"  amount={lvl.amount:.2f} cumulative={lvl.cumulative_amount:.2f}"
                f" avg={lvl.average_entry:.4f}"
            )
    if ladder.stop_beyond_levels:
        beyond = ", ".join(str(n) for n in ladder.stop_beyond_levels)
        click.echo(f"NOTE: DCA level(s) {beyond} sit beyond the stop-loss price")


def _render_validation(result: TradeValidationResult) -> None:
    click.echo(f"Risk level:      {result.risk_level.value}")
    for err in result.errors:
        click.echo(f"  [ERROR] {err}")
    for warn in result.warnings:
        click.echo(f"  [WARN]  {warn}")


def _init_logging(settings: Settings) -> None:
    setup_logging(
        log_dir=settings.log_dir,
        log_level=settings.log_level,
        event_log=settings.event_log_enabled,
    )


@click.group()
def cli() -> None:
    """Trade Planner - position sizing and signal gating."""


@cli.command()
@click.option("--balance", type=Decimal, required=True, help="Available balance")
@click.option("--entry", type=Decimal, required=True, help="Market entry price")
@click.option("--loss", type=Decimal, required=True, help="Stop distance in percent")
@click.option("--risk", type=Decimal, default=None, help="Risk per trade in percent")
@click.option("--initial-pct", type=Decimal, default=None, help="Initial order percent")
@click.option("--dca-levels", type=int, default=None)
@click.option("--take-profit", type=Decimal, default=None)
@click.option("--leverage", type=Decimal, default=None)
@click.option("--market", type=click.Choice(["spot", "futures"]), default="spot")
@click.option("--side", type=click.Choice(["long", "short"]), default="long")
@click.option("--limit-price", type=Decimal, default=None)
@click.option("--open-trades", type=int, default=None)
def preview(
    balance: Decimal,
    entry: Decimal,
    loss: Decimal,
    risk: Decimal | None,
    initial_pct: Decimal | None,
    dca_levels: int | None,
    take_profit: Decimal | None,
    leverage: Decimal | None,
    market: str,
    side: str,
    limit_price: Decimal | None,
    open_trades: int | None,
) -> None:
    """Compute and validate a trade ladder."""
    settings = Settings.load_safe()
    _init_logging(settings)

    try:
        config = BotConfiguration.from_row(
            {
                "risk_percentage": risk,
                "initial_order_percentage": initial_pct,
                "dca_levels": dca_levels,
                "take_profit_percentage": take_profit,
                "leverage": leverage,
                "market_type": market,
            }
        )
    except ConfigurationError as exc:
        click.echo(f"ERROR: {exc}")
        sys.exit(2)

    ladder = compute_ladder(
        entry,
        loss,
        config,
        config.market_type,
        balance,
        side=PositionSide(side),
        order_type=OrderType.LIMIT if limit_price is not None else OrderType.MARKET,
        limit_price=limit_price,
        dca_step_pct=settings.dca_step_pct,
    )
    if ladder is None:
        click.echo("No ladder: balance, price and loss must all be positive.")
        sys.exit(1)

    _render_ladder(ladder)
    log_event("ladder", ladder.model_dump(mode="json"))
    constraints = derive_constraints(config, settings.constraint_defaults)
    validation = validate_ladder(ladder, balance, constraints, open_trades, settings.thresholds)
    log_event("validation", validation.model_dump(mode="json"))
    _render_validation(validation)


@cli.command("check-signal")
@click.option("--symbol", required=True)
@click.option("--type", "signal_type", type=click.Choice(_SIGNAL_TYPES), required=True)
@click.option("--confidence", type=Decimal, required=True)
@click.option("--source", default=None)
@click.option("--mode", type=click.Choice([m.value for m in AutoTradingMode]), default="full_auto")
@click.option("--allow-source", "allowed_sources", multiple=True)
@click.option(
    "--allow-direction",
    "allowed_directions",
    type=click.Choice(["long", "short"]),
    multiple=True,
)
@click.option("--min-confidence", type=Decimal, default=None)
def check_signal(
    symbol: str,
    signal_type: str,
    confidence: Decimal,
    source: str | None,
    mode: str,
    allowed_sources: tuple[str, ...],
    allowed_directions: tuple[str, ...],
    min_confidence: Decimal | None,
) -> None:
    """Run the auto-trading eligibility filter for a signal."""
    _init_logging(Settings.load_safe())
    signal = Signal(
        symbol=symbol,
        signal_type=SignalType(signal_type),
        confidence_score=confidence,
        source=source,
    )
    settings = AutoTradingSettings(
        enabled=True,
        mode=AutoTradingMode(mode),
        allowed_signal_sources=set(allowed_sources),
        allowed_directions={PositionSide(d) for d in allowed_directions},
        min_signal_confidence=min_confidence,
    )
    result = check_signal_eligibility(signal, settings)
    log_event(
        "eligibility",
        {"symbol": symbol, "is_eligible": result.is_eligible, "code": result.code},
    )
    if result.is_eligible:
        click.echo("ELIGIBLE")
        return
    click.echo(f"INELIGIBLE [{result.code}] {result.reasons[0]}")
    sys.exit(1)


@cli.command("suggest-loss")
@click.option("--symbol", required=True)
@click.option("--type", "signal_type", type=click.Choice(_SIGNAL_TYPES), required=True)
@click.option("--confidence", type=Decimal, required=True)
@click.option("--balance", type=Decimal, required=True)
@click.option("--risk", type=Decimal, default=Decimal("2"))
def suggest_loss_cmd(
    symbol: str, signal_type: str, confidence: Decimal, balance: Decimal, risk: Decimal
) -> None:
    """Suggest a stop-loss distance for a signal."""
    _init_logging(Settings.load_safe())
    signal = Signal(symbol=symbol, signal_type=SignalType(signal_type), confidence_score=confidence)
    result = suggest_loss(signal, risk, balance)
    if result is None:
        click.echo("No suggestion: balance must be positive.")
        sys.exit(1)
    click.echo(f"Tier:            {result.liquidity_tier.value}")
    click.echo(f"Suggested loss:  {result.suggested_loss_percentage:.2f}%")
    click.echo(f"Risk level:      {result.risk_level.value}")
    click.echo(f"Max loss:        {result.max_loss_amount:.2f}")


if __name__ == "__main__":
    cli()
