"""Trade planner - suggest a stop, size the ladder, validate it.

Everything here is a thin composition of the pure calculators. The only
side effect is the structured decision log.
"""

from __future__ import annotations

from decimal import Decimal

from trade_planner.config.settings import Settings
from trade_planner.core.models import (
    AutoTradingSettings,
    BotConfiguration,
    OrderType,
    PositionSide,
    RiskLevel,
    Signal,
    SignalType,
    TradePlan,
)
from trade_planner.logging.logger import get_logger, log_event
from trade_planner.risk.constraints import derive_constraints
from trade_planner.risk.validator import validate_ladder
from trade_planner.signals.eligibility import (
    FilterContext,
    FilterResult,
    apply_execution_filters,
    check_signal_eligibility,
)
from trade_planner.sizing.ladder import compute_ladder
from trade_planner.sizing.smart_loss import suggest_loss

logger = get_logger("planner")


class TradePlanner:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings: Settings = settings or Settings.load_safe()

    def plan_signal(
        self,
        signal: Signal,
        bot_config: BotConfiguration,
        auto_settings: AutoTradingSettings | None,
        available_balance: Decimal,
        open_trades_count: int | None = None,
        *,
        automatic: bool = True,
        loss_pct_override: Decimal | None = None,
        order_type: OrderType = OrderType.MARKET,
        limit_price: Decimal | None = None,
    ) -> TradePlan:
        plan = TradePlan(signal=signal)

        if automatic:
            eligibility = check_signal_eligibility(signal, auto_settings or AutoTradingSettings())
            plan.eligibility = eligibility
            log_event(
                "eligibility",
                {
                    "symbol": signal.symbol,
                    "signal_type": signal.signal_type.value,
                    "source": signal.source,
                    "is_eligible": eligibility.is_eligible,
                    "code": eligibility.code,
                },
            )
            if not eligibility.is_eligible:
                logger.info(
                    "signal_ineligible",
                    symbol=signal.symbol,
                    reason=eligibility.reasons[0] if eligibility.reasons else None,
                )
                return plan

        if signal.signal_type == SignalType.HOLD:
            logger.info("plan_skipped", symbol=signal.symbol, reason="hold signal")
            return plan

        smart_loss = suggest_loss(signal, bot_config.risk_percentage, available_balance)
        plan.smart_loss = smart_loss
        if smart_loss is not None:
            log_event("smart_loss", smart_loss.model_dump(mode="json"))

        loss_pct = loss_pct_override
        if loss_pct is None and smart_loss is not None:
            loss_pct = smart_loss.suggested_loss_percentage
        if loss_pct is None:
            logger.info("plan_skipped", symbol=signal.symbol, reason="no balance")
            return plan

        side: PositionSide = signal.signal_type.direction
        ladder = compute_ladder(
            signal.entry_price,
            loss_pct,
            bot_config,
            bot_config.market_type,
            available_balance,
            side=side,
            order_type=order_type,
            limit_price=limit_price,
            dca_step_pct=self.settings.dca_step_pct,
        )
        if ladder is None:
            logger.info("plan_skipped", symbol=signal.symbol, reason="ladder unavailable")
            return plan
        plan.ladder = ladder
        log_event("ladder", {"symbol": signal.symbol, **ladder.model_dump(mode="json")})

        constraints = derive_constraints(bot_config, self.settings.constraint_defaults)
        validation = validate_ladder(
            ladder,
            available_balance,
            constraints,
            open_trades_count,
            self.settings.thresholds,
        )
        plan.constraints = constraints
        plan.validation = validation
        log_event("validation", {"symbol": signal.symbol, **validation.model_dump(mode="json")})

        if validation.risk_level == RiskLevel.DANGER:
            logger.warning("validation_danger", symbol=signal.symbol, errors=validation.errors)
        logger.info(
            "plan_ready",
            symbol=signal.symbol,
            side=side.value,
            total=f"{ladder.total_trade_amount:.2f}",
            stop=f"{ladder.stop_loss_price:.4f}",
            risk_level=validation.risk_level.value,
        )
        return plan

    def check_execution(self, ctx: FilterContext) -> FilterResult:
        """Run the pre-execution filters with the configured cooldown and floor."""
        result = apply_execution_filters(
            ctx,
            cooldown_minutes=self.settings.cooldown_minutes,
            min_confidence=self.settings.min_execution_confidence,
        )
        log_event(
            "execution_filter",
            {
                "symbol": ctx.signal.symbol,
                "passed": result.passed,
                "code": result.code,
                "reason": result.reason,
            },
        )
        return result
