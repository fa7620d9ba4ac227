"""Risk-managed DCA plan with a per-level stop-loss.

Unlike :func:`trade_planner.sizing.ladder.compute_ladder`, which sizes the
trade from a single stop distance, this plan caps the position at a share of
the balance (95% by default) and moves the stop after every DCA fill so that
the loss at the stop stays within the risk budget. Long positions only.
"""

from __future__ import annotations

from decimal import Decimal

from trade_planner.core.models import (
    HUNDRED,
    ZERO,
    BotConfiguration,
    RiskPlan,
    RiskPlanLevel,
    StopLossMethod,
)
from trade_planner.logging.logger import get_logger
from trade_planner.risk.limits import DCA_STEP_PCT, DEFAULT_THRESHOLDS, ValidationThresholds
from trade_planner.sizing.ladder import reachable_dca_levels

logger = get_logger("sizing.risk_engine")

MIN_STOP_GAP = Decimal("0.99")
LOSS_TOLERANCE = Decimal("1.01")


def compute_risk_plan(
    entry_price: Decimal,
    available_balance: Decimal,
    risk_percentage: Decimal,
    suggested_loss_percentage: Decimal,
    bot_config: BotConfiguration,
    *,
    enable_dca: bool = True,
    dca_levels: int | None = None,
    dca_step_pct: Decimal = DCA_STEP_PCT,
    thresholds: ValidationThresholds = DEFAULT_THRESHOLDS,
) -> RiskPlan | None:
    if available_balance <= ZERO or entry_price <= ZERO or suggested_loss_percentage <= ZERO:
        return None

    max_loss = available_balance * risk_percentage / HUNDRED
    sized = max_loss / (suggested_loss_percentage / HUNDRED)
    position_size = min(sized, available_balance * thresholds.balance_utilization_pct)

    margin_used = position_size / bot_config.leverage
    initial = position_size * bot_config.initial_order_percentage / HUNDRED
    stop_loss = entry_price * (1 - suggested_loss_percentage / HUNDRED)

    count = bot_config.dca_levels if dca_levels is None else dca_levels
    count = reachable_dca_levels(count, dca_step_pct)
    levels: list[RiskPlanLevel] = []

    if enable_dca and count > 0 and position_size > initial:
        per_level = (position_size - initial) / Decimal(count)
        cumulative_investment = initial
        cumulative_quantity = initial / entry_price

        for level in range(1, count + 1):
            drop_pct = dca_step_pct * level
            level_entry = entry_price * (1 - drop_pct / HUNDRED)

            cumulative_investment += per_level
            cumulative_quantity += per_level / level_entry
            average = cumulative_investment / cumulative_quantity

            if bot_config.stop_loss_calculation_method == StopLossMethod.AVERAGE_POSITION:
                reference = average
            else:
                reference = entry_price
            level_stop = reference - max_loss / cumulative_quantity
            loss = (reference - level_stop) * cumulative_quantity

            if level_stop >= average:
                level_stop = average * MIN_STOP_GAP
                loss = (average - level_stop) * cumulative_quantity

            stop_loss = level_stop
            levels.append(
                RiskPlanLevel(
                    level=level,
                    price_drop_percent=drop_pct,
                    entry_price=level_entry,
                    amount=per_level,
                    cumulative_amount=cumulative_investment,
                    average_entry=average,
                    stop_loss_price=level_stop,
                    actual_loss_amount=min(loss, max_loss),
                )
            )

    if levels:
        last = levels[-1]
        total_quantity = last.cumulative_amount / last.average_entry
        reference_price = last.average_entry
    else:
        total_quantity = initial / entry_price
        reference_price = entry_price

    final_loss = (reference_price - stop_loss) * total_quantity
    within_limits = final_loss <= max_loss * LOSS_TOLERANCE
    warning = None
    if not within_limits:
        warning = (
            f"Potential loss ({final_loss:.2f}) exceeds the allowed limit ({max_loss:.2f})"
        )

    logger.debug(
        "risk_plan_computed",
        max_allowed_loss=f"{max_loss:.2f}",
        final_loss=f"{final_loss:.2f}",
        position_size=f"{position_size:.2f}",
        within_limits=within_limits,
    )

    return RiskPlan(
        position_size=position_size,
        margin_used=margin_used,
        max_allowed_loss=max_loss,
        initial_amount=initial,
        stop_loss_price=stop_loss,
        final_loss_amount=final_loss,
        levels=levels,
        is_within_risk_limits=within_limits,
        risk_warning=warning,
    )
