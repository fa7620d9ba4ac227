"""Signal eligibility - may the auto trader act on this signal?

``check_signal_eligibility`` applies the user's auto-trading preferences.
``apply_execution_filters`` is the pre-execution gate run by the worker once
a signal is eligible: bot state, symbol lists, cooldown, open trades, the
bot's long/short switches, exchange health and a confidence floor. Per-day
and concurrent auto-trade caps from the settings are enforced by the
execution layer, not here.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from math import ceil

from trade_planner.core.models import (
    AutoTradingMode,
    AutoTradingSettings,
    BotConfiguration,
    EligibilityResult,
    Signal,
    SignalType,
)
from trade_planner.logging.logger import get_logger

logger = get_logger("signals.eligibility")

DEFAULT_COOLDOWN_MINUTES = 15
DEFAULT_MIN_CONFIDENCE = Decimal("70")

_SOURCE_ALIASES = {
    "ai": "ai_ultra",
    "realtime_ai": "ai_realtime",
    "tradingview": "tradingview",
}


def normalize_source(source: str | None) -> str:
    return _SOURCE_ALIASES.get(source or "", "legacy")


def _reject(reason: str, code: str) -> EligibilityResult:
    return EligibilityResult(is_eligible=False, reasons=[reason], code=code)


def check_signal_eligibility(
    signal: Signal, settings: AutoTradingSettings
) -> EligibilityResult:
    """Stop at the first failing check; only its reason is reported."""
    if not settings.enabled or settings.mode == AutoTradingMode.OFF:
        return _reject("Auto trading is disabled", "AUTO_TRADING_DISABLED")

    if settings.allowed_signal_sources:
        normalized = normalize_source(signal.source)
        if normalized not in settings.allowed_signal_sources:
            return _reject(
                f"Signal source '{signal.source or 'legacy'}' is not in allowed sources",
                "SOURCE_NOT_ALLOWED",
            )

    if settings.allowed_directions:
        direction = signal.signal_type.direction
        if direction not in settings.allowed_directions:
            return _reject(
                f"{direction.value.upper()} trades not allowed in auto trading settings",
                "DIRECTION_NOT_ALLOWED",
            )

    if (
        settings.min_signal_confidence is not None
        and signal.confidence_score < settings.min_signal_confidence
    ):
        return _reject(
            f"Confidence score ({signal.confidence_score}) below minimum "
            f"({settings.min_signal_confidence})",
            "LOW_CONFIDENCE",
        )

    return EligibilityResult(is_eligible=True, reasons=[])


@dataclass(frozen=True)
class FilterResult:
    passed: bool
    reason: str | None = None
    code: str | None = None


PASSED = FilterResult(passed=True)


@dataclass
class FilterContext:
    signal: Signal
    bot_config: BotConfiguration
    active_trades_count: int = 0
    last_trade_time: datetime | None = None
    exchange_healthy: bool = True
    allowed_symbols: Sequence[str] = field(default_factory=tuple)
    blacklist_symbols: Sequence[str] = field(default_factory=tuple)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def filter_bot_enabled(ctx: FilterContext) -> FilterResult:
    if not ctx.bot_config.is_active:
        return FilterResult(False, "Bot is not active for this user", "BOT_DISABLED")
    return PASSED


def filter_symbol_allowed(ctx: FilterContext) -> FilterResult:
    symbol = ctx.signal.symbol
    if ctx.blacklist_symbols and symbol in ctx.blacklist_symbols:
        return FilterResult(False, f"Symbol {symbol} is in blacklist", "SYMBOL_BLACKLISTED")
    if ctx.allowed_symbols and symbol not in ctx.allowed_symbols:
        return FilterResult(
            False, f"Symbol {symbol} is not in allowed list", "SYMBOL_NOT_ALLOWED"
        )
    return PASSED


def filter_cooldown(
    ctx: FilterContext, cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
) -> FilterResult:
    if ctx.last_trade_time is None:
        return PASSED

    cooldown = timedelta(minutes=cooldown_minutes)
    elapsed = ctx.now - ctx.last_trade_time
    if elapsed < cooldown:
        remaining = ceil((cooldown - elapsed).total_seconds() / 60)
        return FilterResult(
            False,
            f"Cooldown period active. Please wait {remaining} more minutes",
            "COOLDOWN_ACTIVE",
        )
    return PASSED


def filter_max_concurrent_trades(ctx: FilterContext) -> FilterResult:
    max_trades = ctx.bot_config.max_active_trades
    if ctx.active_trades_count >= max_trades:
        return FilterResult(
            False,
            f"Maximum active trades limit reached ({ctx.active_trades_count}/{max_trades})",
            "MAX_TRADES_REACHED",
        )
    return PASSED


def filter_trade_direction(ctx: FilterContext) -> FilterResult:
    signal_type = ctx.signal.signal_type
    config = ctx.bot_config
    if signal_type in (SignalType.BUY, SignalType.STRONG_BUY) and not config.allow_long_trades:
        return FilterResult(False, "Long trades are not allowed", "LONG_TRADES_DISABLED")
    # HOLD is neither; it passes.
    if signal_type in (SignalType.SELL, SignalType.STRONG_SELL) and not config.allow_short_trades:
        return FilterResult(False, "Short trades are not allowed", "SHORT_TRADES_DISABLED")
    return PASSED


def filter_exchange_health(ctx: FilterContext) -> FilterResult:
    if not ctx.exchange_healthy:
        return FilterResult(False, "Exchange health check failed", "EXCHANGE_UNHEALTHY")
    return PASSED


def filter_confidence_score(
    ctx: FilterContext, min_confidence: Decimal = DEFAULT_MIN_CONFIDENCE
) -> FilterResult:
    score = ctx.signal.confidence_score
    if score < min_confidence:
        return FilterResult(
            False,
            f"Confidence score ({score}) below minimum ({min_confidence})",
            "LOW_CONFIDENCE",
        )
    return PASSED


def apply_execution_filters(
    ctx: FilterContext,
    *,
    cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES,
    min_confidence: Decimal = DEFAULT_MIN_CONFIDENCE,
) -> FilterResult:
    filters: list[Callable[[FilterContext], FilterResult]] = [
        filter_bot_enabled,
        filter_symbol_allowed,
        lambda c: filter_cooldown(c, cooldown_minutes),
        filter_max_concurrent_trades,
        filter_trade_direction,
        filter_exchange_health,
        lambda c: filter_confidence_score(c, min_confidence),
    ]
    for check in filters:
        result = check(ctx)
        if not result.passed:
            logger.info(
                "execution_filtered",
                symbol=ctx.signal.symbol,
                code=result.code,
                reason=result.reason,
            )
            return result
    return PASSED
