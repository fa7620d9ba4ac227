"""Smart stop-loss suggestion from liquidity tier and signal confidence"""

from __future__ import annotations

from decimal import Decimal

from trade_planner.core.models import (
    HUNDRED,
    ZERO,
    LiquidityTier,
    LossRiskLevel,
    Signal,
    SmartLossResult,
)

HIGH_LIQUIDITY_ASSETS = frozenset({"BTC", "ETH", "BNB", "SOL", "XRP"})
MEDIUM_LIQUIDITY_ASSETS = frozenset(
    {
        "ADA",
        "DOGE",
        "AVAX",
        "DOT",
        "MATIC",
        "LINK",
        "LTC",
        "TRX",
        "ATOM",
        "UNI",
        "BCH",
        "NEAR",
        "TON",
        "SHIB",
    }
)

BASE_LOSS_PCT: dict[LiquidityTier, Decimal] = {
    LiquidityTier.HIGH: Decimal("2.0"),
    LiquidityTier.MEDIUM: Decimal("3.5"),
    LiquidityTier.LOW: Decimal("5.5"),
}

MIN_LOSS_PCT = Decimal("1.5")
MAX_LOSS_PCT = Decimal("8.0")

HIGH_CONFIDENCE = Decimal("80")
LOW_CONFIDENCE = Decimal("40")
HIGH_CONFIDENCE_FACTOR = Decimal("0.8")
LOW_CONFIDENCE_FACTOR = Decimal("1.3")
STRONG_SIGNAL_FACTOR = Decimal("0.9")

# Longest first so "FDUSD" wins over "USD".
_QUOTE_SUFFIXES = ("FDUSD", "USDT", "USDC", "BUSD", "USD", "BTC")
_SEPARATORS = ("/", "-", "_", ":")


def base_asset(symbol: str) -> str:
    text = symbol.strip().upper()
    for sep in _SEPARATORS:
        if sep in text:
            return text.split(sep, 1)[0]
    for quote in _QUOTE_SUFFIXES:
        if text.endswith(quote) and len(text) > len(quote):
            return text[: -len(quote)]
    return text


def liquidity_tier(symbol: str) -> LiquidityTier:
    asset = base_asset(symbol)
    if asset in HIGH_LIQUIDITY_ASSETS:
        return LiquidityTier.HIGH
    if asset in MEDIUM_LIQUIDITY_ASSETS:
        return LiquidityTier.MEDIUM
    return LiquidityTier.LOW


def loss_risk_level(loss_pct: Decimal) -> LossRiskLevel:
    if loss_pct <= Decimal("2.5"):
        return LossRiskLevel.LOW
    if loss_pct <= Decimal("4.5"):
        return LossRiskLevel.MEDIUM
    return LossRiskLevel.HIGH


def suggest_loss(
    signal: Signal | None, risk_percentage: Decimal, available_balance: Decimal
) -> SmartLossResult | None:
    """Suggest a stop-loss distance in percent for ``signal``.

    Advisory only: the result seeds the ladder calculator, which may be given
    a different loss percentage by the user.
    """
    if signal is None or available_balance <= ZERO:
        return None

    tier = liquidity_tier(signal.symbol)
    loss_pct = BASE_LOSS_PCT[tier]
    adjustments: list[str] = [f"tier:{tier.value}={loss_pct}"]

    if signal.confidence_score >= HIGH_CONFIDENCE:
        loss_pct *= HIGH_CONFIDENCE_FACTOR
        adjustments.append(f"high_confidence:x{HIGH_CONFIDENCE_FACTOR}")
    elif signal.confidence_score <= LOW_CONFIDENCE:
        loss_pct *= LOW_CONFIDENCE_FACTOR
        adjustments.append(f"low_confidence:x{LOW_CONFIDENCE_FACTOR}")

    if signal.signal_type.is_strong:
        loss_pct *= STRONG_SIGNAL_FACTOR
        adjustments.append(f"strong_signal:x{STRONG_SIGNAL_FACTOR}")

    clamped = min(max(loss_pct, MIN_LOSS_PCT), MAX_LOSS_PCT)
    if clamped != loss_pct:
        adjustments.append(f"clamped:{clamped}")

    return SmartLossResult(
        symbol=signal.symbol,
        base_asset=base_asset(signal.symbol),
        liquidity_tier=tier,
        suggested_loss_percentage=clamped,
        risk_level=loss_risk_level(clamped),
        max_loss_amount=available_balance * risk_percentage / HUNDRED,
        adjustments=adjustments,
    )
