"""Trade validator - advisory checks of a ladder against the risk profile"""

from __future__ import annotations

from decimal import Decimal

from trade_planner.core.models import (
    HUNDRED,
    ZERO,
    RiskLevel,
    RiskProfileConstraints,
    TradeLadder,
    TradeValidationResult,
)
from trade_planner.logging.logger import get_logger
from trade_planner.risk.limits import DEFAULT_THRESHOLDS, ValidationThresholds

logger = get_logger("risk.validator")


class _Findings:
    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.level: RiskLevel = RiskLevel.SAFE

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        self._raise_to(RiskLevel.WARNING)

    def fail(self, message: str) -> None:
        self.errors.append(message)
        self._raise_to(RiskLevel.DANGER)

    def _raise_to(self, level: RiskLevel) -> None:
        if level.severity > self.level.severity:
            self.level = level

    def result(self) -> TradeValidationResult:
        return TradeValidationResult(
            valid=not self.errors,
            warnings=self.warnings,
            errors=self.errors,
            risk_level=self.level,
        )


def validate_ladder(
    ladder: TradeLadder,
    available_balance: Decimal,
    constraints: RiskProfileConstraints,
    current_open_trades_count: int | None = None,
    thresholds: ValidationThresholds = DEFAULT_THRESHOLDS,
) -> TradeValidationResult:
    """Check ``ladder`` against the risk profile.

    Every rule is evaluated; the resulting risk level is the worst one seen.
    The result is guidance for the user and never blocks order placement.
    """
    findings = _Findings()

    if available_balance <= ZERO:
        findings.fail("No available balance to place this trade")
        return findings.result()

    risk_pct = ladder.max_loss_amount / available_balance * HUNDRED
    max_risk = constraints.max_risk_per_trade

    if risk_pct > max_risk * thresholds.danger_risk_multiplier:
        findings.fail(
            f"Risk per trade {risk_pct:.2f}% far exceeds the limit of {max_risk}%"
        )
    elif risk_pct > max_risk:
        findings.warn(f"Risk per trade {risk_pct:.2f}% exceeds the limit of {max_risk}%")

    if len(ladder.levels) > constraints.max_dca_levels:
        findings.fail(
            f"DCA levels ({len(ladder.levels)}) exceed the maximum of {constraints.max_dca_levels}"
        )

    usable = available_balance * thresholds.balance_utilization_pct
    if ladder.total_trade_amount > usable:
        findings.warn(
            f"Trade amount {ladder.total_trade_amount:.2f} uses more than "
            f"{thresholds.balance_utilization_pct * HUNDRED:.0f}% of the available balance"
        )

    if current_open_trades_count is not None:
        max_trades = constraints.max_concurrent_trades
        if current_open_trades_count >= max_trades:
            findings.fail(
                f"Maximum concurrent trades reached ({current_open_trades_count}/{max_trades})"
            )
        elif current_open_trades_count >= max_trades * thresholds.concurrent_warning_ratio:
            findings.warn(
                f"Approaching the concurrent trade limit ({current_open_trades_count}/{max_trades})"
            )

    if risk_pct > constraints.max_total_risk:
        findings.warn(
            f"Risk {risk_pct:.2f}% exceeds the total risk budget of {constraints.max_total_risk}%"
        )

    result = findings.result()
    logger.debug(
        "ladder_validated",
        valid=result.valid,
        risk_level=result.risk_level.value,
        risk_pct=f"{risk_pct:.4f}",
        warnings=len(result.warnings),
        errors=len(result.errors),
    )
    return result
