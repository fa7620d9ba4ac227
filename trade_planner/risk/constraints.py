"""Hard limits derived from a user's bot configuration."""

from __future__ import annotations

from trade_planner.core.models import BotConfiguration, RiskProfileConstraints
from trade_planner.risk.limits import DEFAULT_CONSTRAINTS, ConstraintDefaults


def derive_constraints(
    bot_config: BotConfiguration | None,
    defaults: ConstraintDefaults = DEFAULT_CONSTRAINTS,
) -> RiskProfileConstraints:
    """Build the risk profile for ``bot_config``.

    Fields the configuration leaves unset fall back to ``defaults``; passing
    ``None`` yields the default profile. Nothing is stored: the profile is a
    view that is recomputed whenever the configuration changes.
    """
    explicit = bot_config.model_fields_set if bot_config is not None else set()

    def pick(field: str, fallback: object) -> object:
        if bot_config is None or field not in explicit:
            return fallback
        return getattr(bot_config, field)

    max_risk = pick("risk_percentage", defaults.risk_percentage)
    max_dca = pick("dca_levels", defaults.dca_levels)
    max_leverage = pick("leverage", defaults.leverage)
    max_concurrent = pick("max_active_trades", defaults.max_concurrent_trades)

    return RiskProfileConstraints(
        max_risk_per_trade=max_risk,
        max_dca_levels=max_dca,
        max_leverage=max_leverage,
        max_concurrent_trades=max_concurrent,
        max_total_risk=max_risk * max_concurrent,  # type: ignore[operator]
    )
