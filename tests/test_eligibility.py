"""Tests for auto-trading eligibility and the execution filters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trade_planner.core.models import (
    AutoTradingMode,
    AutoTradingSettings,
    BotConfiguration,
    Signal,
    SignalType,
)
from trade_planner.signals.eligibility import (
    FilterContext,
    apply_execution_filters,
    check_signal_eligibility,
    filter_cooldown,
    filter_trade_direction,
    normalize_source,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_signal(
    *,
    signal_type: SignalType = SignalType.BUY,
    confidence: str = "75",
    source: str | None = "ai",
    symbol: str = "BTC/USDT",
) -> Signal:
    return Signal(
        symbol=symbol,
        signal_type=signal_type,
        confidence_score=Decimal(confidence),
        entry_price=Decimal("100"),
        source=source,
    )


def make_settings(**kwargs: object) -> AutoTradingSettings:
    base: dict[str, object] = {"enabled": True, "mode": AutoTradingMode.FULL_AUTO}
    base.update(kwargs)
    return AutoTradingSettings(**base)  # type: ignore[arg-type]


def make_context(**kwargs: object) -> FilterContext:
    base: dict[str, object] = {
        "signal": make_signal(),
        "bot_config": BotConfiguration(),
        "now": NOW,
    }
    base.update(kwargs)
    return FilterContext(**base)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Enabled / mode
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("mode", list(AutoTradingMode))
def test_disabled_settings_always_ineligible(mode: AutoTradingMode) -> None:
    settings = make_settings(
        enabled=False,
        mode=mode,
        allowed_signal_sources={"ai_ultra"},
        allowed_directions={"long"},
        min_signal_confidence=Decimal("0"),
    )
    result = check_signal_eligibility(make_signal(), settings)
    assert not result.is_eligible
    assert result.reasons == ["Auto trading is disabled"]
    assert result.code == "AUTO_TRADING_DISABLED"


def test_off_mode_is_ineligible_even_when_enabled() -> None:
    result = check_signal_eligibility(make_signal(), make_settings(mode=AutoTradingMode.OFF))
    assert not result.is_eligible
    assert result.reasons == ["Auto trading is disabled"]


@pytest.mark.parametrize("mode", [AutoTradingMode.FULL_AUTO, AutoTradingMode.SEMI_AUTO])
def test_enabled_without_restrictions_is_eligible(mode: AutoTradingMode) -> None:
    result = check_signal_eligibility(make_signal(), make_settings(mode=mode))
    assert result.is_eligible
    assert result.reasons == []
    assert result.code is None


# ---------------------------------------------------------------------------
# Source allow-list
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw,normalized",
    [
        ("ai", "ai_ultra"),
        ("realtime_ai", "ai_realtime"),
        ("tradingview", "tradingview"),
        ("telegram", "legacy"),
        (None, "legacy"),
        ("", "legacy"),
    ],
)
def test_normalize_source(raw: str | None, normalized: str) -> None:
    assert normalize_source(raw) == normalized


def test_source_in_allow_list_passes() -> None:
    settings = make_settings(allowed_signal_sources={"ai_ultra"})
    assert check_signal_eligibility(make_signal(source="ai"), settings).is_eligible


def test_source_not_in_allow_list_rejected() -> None:
    settings = make_settings(allowed_signal_sources={"ai_ultra"})
    result = check_signal_eligibility(make_signal(source="tradingview"), settings)
    assert not result.is_eligible
    assert result.code == "SOURCE_NOT_ALLOWED"
    assert "'tradingview'" in result.reasons[0]


def test_unknown_source_matches_legacy() -> None:
    settings = make_settings(allowed_signal_sources={"legacy"})
    assert check_signal_eligibility(make_signal(source="webhook"), settings).is_eligible


# ---------------------------------------------------------------------------
# Direction allow-list
# ---------------------------------------------------------------------------


def test_sell_signal_rejected_when_only_long_allowed() -> None:
    settings = make_settings(allowed_directions=["long"])
    signal = make_signal(signal_type=SignalType.SELL, confidence="45")
    result = check_signal_eligibility(signal, settings)
    assert not result.is_eligible
    assert len(result.reasons) == 1
    assert "SHORT trades not allowed" in result.reasons[0]
    assert result.code == "DIRECTION_NOT_ALLOWED"


@pytest.mark.parametrize("signal_type", [SignalType.BUY, SignalType.STRONG_BUY])
def test_buy_signals_map_to_long(signal_type: SignalType) -> None:
    settings = make_settings(allowed_directions=["long"])
    assert check_signal_eligibility(make_signal(signal_type=signal_type), settings).is_eligible


def test_strong_buy_rejected_when_only_short_allowed() -> None:
    settings = make_settings(allowed_directions=["short"])
    result = check_signal_eligibility(make_signal(signal_type=SignalType.STRONG_BUY), settings)
    assert "LONG trades not allowed" in result.reasons[0]


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


def test_confidence_below_minimum_rejected() -> None:
    settings = make_settings(min_signal_confidence=Decimal("80"))
    result = check_signal_eligibility(make_signal(confidence="79.5"), settings)
    assert not result.is_eligible
    assert result.code == "LOW_CONFIDENCE"
    assert "79.5" in result.reasons[0]


def test_confidence_equal_to_minimum_passes() -> None:
    settings = make_settings(min_signal_confidence=Decimal("80"))
    assert check_signal_eligibility(make_signal(confidence="80"), settings).is_eligible


def test_only_first_failure_is_reported() -> None:
    settings = make_settings(
        allowed_signal_sources={"tradingview"},
        allowed_directions=["long"],
        min_signal_confidence=Decimal("90"),
    )
    signal = make_signal(signal_type=SignalType.SELL, confidence="10", source="ai")
    result = check_signal_eligibility(signal, settings)
    assert result.code == "SOURCE_NOT_ALLOWED"
    assert len(result.reasons) == 1


def test_daily_and_concurrent_caps_are_not_enforced_here() -> None:
    settings = make_settings(max_auto_trades_per_day=0, max_concurrent_auto_positions=0)
    assert check_signal_eligibility(make_signal(), settings).is_eligible


# ---------------------------------------------------------------------------
# Execution filters
# ---------------------------------------------------------------------------


def test_execution_filters_pass_by_default() -> None:
    assert apply_execution_filters(make_context()).passed


def test_inactive_bot_is_filtered_first() -> None:
    ctx = make_context(
        bot_config=BotConfiguration(is_active=False),
        exchange_healthy=False,
    )
    result = apply_execution_filters(ctx)
    assert not result.passed
    assert result.code == "BOT_DISABLED"


def test_blacklist_wins_over_whitelist() -> None:
    ctx = make_context(allowed_symbols=["BTC/USDT"], blacklist_symbols=["BTC/USDT"])
    assert apply_execution_filters(ctx).code == "SYMBOL_BLACKLISTED"


def test_symbol_outside_whitelist_filtered() -> None:
    ctx = make_context(allowed_symbols=["ETH/USDT"])
    assert apply_execution_filters(ctx).code == "SYMBOL_NOT_ALLOWED"


def test_cooldown_reports_remaining_minutes() -> None:
    ctx = make_context(last_trade_time=NOW - timedelta(minutes=10, seconds=30))
    result = filter_cooldown(ctx)
    assert not result.passed
    assert result.code == "COOLDOWN_ACTIVE"
    assert "wait 5 more minutes" in (result.reason or "")


def test_cooldown_elapsed_passes() -> None:
    ctx = make_context(last_trade_time=NOW - timedelta(minutes=15))
    assert filter_cooldown(ctx).passed


def test_custom_cooldown_is_honoured() -> None:
    ctx = make_context(last_trade_time=NOW - timedelta(minutes=10))
    assert apply_execution_filters(ctx, cooldown_minutes=5).passed


def test_max_active_trades_filtered() -> None:
    ctx = make_context(bot_config=BotConfiguration(max_active_trades=3), active_trades_count=3)
    result = apply_execution_filters(ctx)
    assert result.code == "MAX_TRADES_REACHED"
    assert "(3/3)" in (result.reason or "")


def test_unhealthy_exchange_filtered() -> None:
    assert apply_execution_filters(make_context(exchange_healthy=False)).code == "EXCHANGE_UNHEALTHY"


def test_confidence_floor_defaults_to_seventy() -> None:
    ctx = make_context(signal=make_signal(confidence="69"))
    assert apply_execution_filters(ctx).code == "LOW_CONFIDENCE"
    assert apply_execution_filters(ctx, min_confidence=Decimal("60")).passed


def test_long_trades_disabled_on_bot() -> None:
    ctx = make_context(
        signal=make_signal(signal_type=SignalType.STRONG_BUY),
        bot_config=BotConfiguration(allow_long_trades=False),
    )
    result = apply_execution_filters(ctx)
    assert result.code == "LONG_TRADES_DISABLED"
    assert result.reason == "Long trades are not allowed"


def test_short_trades_disabled_on_bot() -> None:
    ctx = make_context(
        signal=make_signal(signal_type=SignalType.SELL),
        bot_config=BotConfiguration(allow_short_trades=False),
    )
    assert apply_execution_filters(ctx).code == "SHORT_TRADES_DISABLED"
    buy = make_context(bot_config=BotConfiguration(allow_short_trades=False))
    assert apply_execution_filters(buy).passed


def test_direction_switch_runs_after_max_trades_and_before_exchange_health() -> None:
    config = BotConfiguration(allow_long_trades=False, max_active_trades=1)
    full = make_context(bot_config=config, active_trades_count=1, exchange_healthy=False)
    assert apply_execution_filters(full).code == "MAX_TRADES_REACHED"
    unhealthy = make_context(bot_config=config, exchange_healthy=False)
    assert apply_execution_filters(unhealthy).code == "LONG_TRADES_DISABLED"


def test_hold_passes_direction_switches() -> None:
    ctx = make_context(
        signal=make_signal(signal_type=SignalType.HOLD),
        bot_config=BotConfiguration(allow_long_trades=False, allow_short_trades=False),
    )
    assert filter_trade_direction(ctx).passed
