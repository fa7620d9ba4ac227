"""Risk limits - immutable constants for sizing and validation"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ConstraintDefaults:
    """Fallbacks used when a bot configuration leaves a field unset"""

    risk_percentage: Decimal = Decimal("2")
    dca_levels: int = 3
    leverage: Decimal = Decimal("1")
    max_concurrent_trades: int = 5


@dataclass(frozen=True)
class ValidationThresholds:
    """Hardcoded validator multipliers - IMMUTABLE at runtime"""

    danger_risk_multiplier: Decimal = Decimal("1.5")
    balance_utilization_pct: Decimal = Decimal("0.95")
    concurrent_warning_ratio: Decimal = Decimal("0.8")


DEFAULT_CONSTRAINTS = ConstraintDefaults()
DEFAULT_THRESHOLDS = ValidationThresholds()

# Fixed distance between consecutive DCA entries, in percent of entry price.
DCA_STEP_PCT = Decimal("2")
