"""Domain enums and models for the trade planner.

This module is the single source of truth for domain types used across the
planner. All monetary values and prices are represented with Decimal.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, ValidationError, computed_field, model_validator

from trade_planner.core.errors import ConfigurationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class MarketType(str, Enum):
    SPOT = "spot"
    FUTURES = "futures"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


class PositionSide(str, Enum):
    LONG = "long"
    SHORT = "short"


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    STRONG_BUY = "STRONG_BUY"
    STRONG_SELL = "STRONG_SELL"

    @property
    def is_strong(self) -> bool:
        return "STRONG" in self.value

    @property
    def direction(self) -> PositionSide:
        if self in (SignalType.BUY, SignalType.STRONG_BUY):
            return PositionSide.LONG
        return PositionSide.SHORT


class AutoTradingMode(str, Enum):
    OFF = "off"
    FULL_AUTO = "full_auto"
    SEMI_AUTO = "semi_auto"


class StopLossMethod(str, Enum):
    INITIAL_ENTRY = "initial_entry"
    AVERAGE_POSITION = "average_position"


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def severity(self) -> int:
        return _RISK_SEVERITY[self]


_RISK_SEVERITY = {RiskLevel.SAFE: 0, RiskLevel.WARNING: 1, RiskLevel.DANGER: 2}


class LossRiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class LiquidityTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Keys accepted by BotConfiguration.from_row, mapped to field names.
_ROW_ALIASES: dict[str, str] = {
    "totalCapital": "total_capital",
    "riskPercentage": "risk_percentage",
    "initialOrderPercentage": "initial_order_percentage",
    "dcaLevels": "dca_levels",
    "takeProfitPercentage": "take_profit_percentage",
    "marketType": "market_type",
    "maxActiveTrades": "max_active_trades",
    "maxConcurrentTrades": "max_active_trades",
    "max_concurrent_trades": "max_active_trades",
    "stopLossCalculationMethod": "stop_loss_calculation_method",
    "isActive": "is_active",
    "allowLongTrades": "allow_long_trades",
    "allowShortTrades": "allow_short_trades",
}


class BotConfiguration(BaseModel):
    total_capital: Decimal = Field(default=ZERO, ge=ZERO)
    risk_percentage: Decimal = Field(default=Decimal("2"), gt=ZERO, le=HUNDRED)
    initial_order_percentage: Decimal = Field(default=Decimal("25"), gt=ZERO, le=HUNDRED)
    dca_levels: int = Field(default=3, ge=0)
    take_profit_percentage: Decimal = Field(default=Decimal("3"), ge=ZERO)
    leverage: Decimal = Field(default=Decimal("1"), ge=Decimal("1"))
    market_type: MarketType = Field(default=MarketType.SPOT)
    max_active_trades: int = Field(default=5, ge=1)
    stop_loss_calculation_method: StopLossMethod = Field(default=StopLossMethod.INITIAL_ENTRY)
    is_active: bool = Field(default=True)
    allow_long_trades: bool = Field(default=True)
    allow_short_trades: bool = Field(default=True)

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "BotConfiguration":
        """Parse a loosely typed settings row into a validated configuration.

        Accepts snake_case or camelCase keys. ``None`` and empty strings are
        treated as absent so the field default applies; unknown keys are ignored.
        """
        values: dict[str, object] = {}
        for key, value in row.items():
            name = _ROW_ALIASES.get(key, key)
            if name not in cls.model_fields:
                continue
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            values[name] = value
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid bot configuration: {exc}") from exc


class DCALevel(BaseModel):
    level: int = Field(ge=1)
    percentage: Decimal = Field(...)
    amount: Decimal = Field(...)
    target_price: Decimal = Field(...)
    cumulative_amount: Decimal = Field(...)
    average_entry: Decimal = Field(...)


class TradeLadder(BaseModel):
    side: PositionSide = Field(default=PositionSide.LONG)
    entry_price: Decimal = Field(...)
    max_loss_amount: Decimal = Field(...)
    total_trade_amount: Decimal = Field(...)
    initial_order_amount: Decimal = Field(...)
    dca_reserved_amount: Decimal = Field(...)
    leveraged_amount: Decimal = Field(...)
    stop_loss_price: Decimal = Field(...)
    take_profit_price: Decimal = Field(...)
    price_drop_percentage: Decimal = Field(...)
    levels: list[DCALevel] = Field(default_factory=list)

    @computed_field
    @property
    def stop_beyond_levels(self) -> list[int]:
        """DCA levels whose target lies past the stop-loss price."""
        if self.side == PositionSide.LONG:
            return [lvl.level for lvl in self.levels if lvl.target_price < self.stop_loss_price]
        return [lvl.level for lvl in self.levels if lvl.target_price > self.stop_loss_price]


class RiskProfileConstraints(BaseModel):
    max_risk_per_trade: Decimal = Field(...)
    max_dca_levels: int = Field(...)
    max_leverage: Decimal = Field(...)
    max_concurrent_trades: int = Field(...)
    max_total_risk: Decimal = Field(...)


class TradeValidationResult(BaseModel):
    valid: bool = Field(...)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    risk_level: RiskLevel = Field(default=RiskLevel.SAFE)


class Signal(BaseModel):
    symbol: str = Field(...)
    timeframe: str = Field(default="1h")
    signal_type: SignalType = Field(...)
    confidence_score: Decimal = Field(ge=ZERO, le=HUNDRED)
    entry_price: Decimal = Field(default=ZERO, ge=ZERO)
    source: str | None = None


class AutoTradingSettings(BaseModel):
    enabled: bool = Field(default=False)
    mode: AutoTradingMode = Field(default=AutoTradingMode.OFF)
    allowed_signal_sources: set[str] = Field(default_factory=set)
    allowed_directions: set[PositionSide] = Field(default_factory=set)
    min_signal_confidence: Decimal | None = None
    max_auto_trades_per_day: int | None = None
    max_concurrent_auto_positions: int | None = None


class EligibilityResult(BaseModel):
    is_eligible: bool = Field(...)
    reasons: list[str] = Field(default_factory=list)
    code: str | None = None


class SmartLossResult(BaseModel):
    symbol: str = Field(...)
    base_asset: str = Field(...)
    liquidity_tier: LiquidityTier = Field(...)
    suggested_loss_percentage: Decimal = Field(...)
    risk_level: LossRiskLevel = Field(...)
    max_loss_amount: Decimal = Field(...)
    adjustments: list[str] = Field(default_factory=list)


class RiskPlanLevel(BaseModel):
    level: int = Field(ge=1)
    price_drop_percent: Decimal = Field(...)
    entry_price: Decimal = Field(...)
    amount: Decimal = Field(...)
    cumulative_amount: Decimal = Field(...)
    average_entry: Decimal = Field(...)
    stop_loss_price: Decimal = Field(...)
    actual_loss_amount: Decimal = Field(...)


class RiskPlan(BaseModel):
    position_size: Decimal = Field(...)
    margin_used: Decimal = Field(...)
    max_allowed_loss: Decimal = Field(...)
    initial_amount: Decimal = Field(...)
    stop_loss_price: Decimal = Field(...)
    final_loss_amount: Decimal = Field(...)
    levels: list[RiskPlanLevel] = Field(default_factory=list)
    is_within_risk_limits: bool = Field(...)
    risk_warning: str | None = None

    @model_validator(mode="after")
    def _validate_sizes(self) -> "RiskPlan":
        if self.initial_amount > self.position_size:
            raise ValueError("initial_amount must be <= position_size")
        return self


class TradePlan(BaseModel):
    signal: Signal = Field(...)
    eligibility: EligibilityResult | None = None
    smart_loss: SmartLossResult | None = None
    ladder: TradeLadder | None = None
    constraints: RiskProfileConstraints | None = None
    validation: TradeValidationResult | None = None

    @computed_field
    @property
    def actionable(self) -> bool:
        if self.eligibility is not None and not self.eligibility.is_eligible:
            return False
        return self.ladder is not None
