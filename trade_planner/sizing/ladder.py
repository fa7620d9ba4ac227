"""Trade ladder calculator - position sizing and DCA entry levels"""

from __future__ import annotations

from decimal import ROUND_CEILING, Decimal

from trade_planner.core.models import (
    HUNDRED,
    ZERO,
    BotConfiguration,
    DCALevel,
    MarketType,
    OrderType,
    PositionSide,
    TradeLadder,
)
from trade_planner.logging.logger import get_logger
from trade_planner.risk.limits import DCA_STEP_PCT

logger = get_logger("sizing.ladder")

ONE = Decimal("1")


def effective_entry_price(
    market_price: Decimal, order_type: OrderType, limit_price: Decimal | None
) -> Decimal:
    if order_type == OrderType.LIMIT and limit_price is not None and limit_price > ZERO:
        return limit_price
    return market_price


def compute_ladder(
    entry_price: Decimal,
    loss_pct_from_entry: Decimal,
    bot_config: BotConfiguration,
    market_type: MarketType,
    available_balance: Decimal,
    *,
    side: PositionSide = PositionSide.LONG,
    order_type: OrderType = OrderType.MARKET,
    limit_price: Decimal | None = None,
    dca_step_pct: Decimal = DCA_STEP_PCT,
) -> TradeLadder | None:
    """Size a trade so that hitting the stop loses exactly the risk budget.

    Returns ``None`` when there is no balance, no price, no stop distance, or
    when the stop distance degenerates to zero. The caller is responsible for
    telling the user why nothing was computed.

    The size assumes the loss is realised over the whole ladder at the stop
    distance measured from the first entry; once DCA levels fill the real
    loss at the stop differs from ``max_loss_amount``.
    """
    if available_balance <= ZERO or entry_price <= ZERO or loss_pct_from_entry <= ZERO:
        return None

    max_loss = available_balance * bot_config.risk_percentage / HUNDRED
    entry = effective_entry_price(entry_price, order_type, limit_price)

    loss_fraction = loss_pct_from_entry / HUNDRED
    if side == PositionSide.LONG:
        stop_loss = entry * (ONE - loss_fraction)
    else:
        stop_loss = entry * (ONE + loss_fraction)

    if stop_loss <= ZERO:
        logger.debug("ladder_stop_non_positive", entry=str(entry), loss_pct=str(loss_pct_from_entry))
        return None

    price_drop = abs(entry - stop_loss) / entry
    if price_drop <= ZERO:
        logger.debug("ladder_zero_stop_distance", entry=str(entry))
        return None

    total = max_loss / price_drop
    leverage = bot_config.leverage if market_type == MarketType.FUTURES else ONE
    leveraged = total * leverage

    initial = total * bot_config.initial_order_percentage / HUNDRED
    reserved = total - initial

    tp_fraction = bot_config.take_profit_percentage / HUNDRED
    if side == PositionSide.LONG:
        take_profit = entry * (ONE + tp_fraction)
    else:
        take_profit = entry * (ONE - tp_fraction)

    levels = _build_levels(entry, initial, reserved, bot_config.dca_levels, side, dca_step_pct)

    return TradeLadder(
        side=side,
        entry_price=entry,
        max_loss_amount=max_loss,
        total_trade_amount=total,
        initial_order_amount=initial,
        dca_reserved_amount=reserved,
        leveraged_amount=leveraged,
        stop_loss_price=stop_loss,
        take_profit_price=take_profit,
        price_drop_percentage=price_drop,
        levels=levels,
    )


def reachable_dca_levels(count: int, step_pct: Decimal) -> int:
    """Cap ``count`` to the levels whose downward target stays above zero."""
    if count <= 0 or step_pct <= ZERO:
        return max(count, 0)
    limit = int((HUNDRED / step_pct).to_integral_value(rounding=ROUND_CEILING)) - 1
    return max(0, min(count, limit))


def _build_levels(
    entry: Decimal,
    initial: Decimal,
    reserved: Decimal,
    count: int,
    side: PositionSide,
    step_pct: Decimal,
) -> list[DCALevel]:
    if side == PositionSide.LONG:
        reachable = reachable_dca_levels(count, step_pct)
        if reachable < count:
            logger.debug("dca_levels_capped", requested=count, reachable=reachable)
        count = reachable

    # Nothing left to spread: the initial order takes the whole amount.
    if count <= 0 or reserved <= ZERO:
        return []

    per_level = reserved / Decimal(count)
    cumulative_investment = initial
    cumulative_quantity = initial / entry

    levels: list[DCALevel] = []
    for level in range(1, count + 1):
        # Steps are a fixed percentage per level, not a fraction of the stop distance.
        offset_pct = step_pct * level
        if side == PositionSide.LONG:
            target = entry * (ONE - offset_pct / HUNDRED)
        else:
            target = entry * (ONE + offset_pct / HUNDRED)

        cumulative_investment += per_level
        cumulative_quantity += per_level / target

        levels.append(
            DCALevel(
                level=level,
                percentage=offset_pct,
                amount=per_level,
                target_price=target,
                cumulative_amount=cumulative_investment,
                average_entry=cumulative_investment / cumulative_quantity,
            )
        )
    return levels
