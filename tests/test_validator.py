"""Tests for the advisory trade validator."""

from __future__ import annotations

from decimal import Decimal

import pytest

from trade_planner.core.models import (
    BotConfiguration,
    MarketType,
    RiskLevel,
    RiskProfileConstraints,
    TradeLadder,
)
from trade_planner.risk.constraints import derive_constraints
from trade_planner.risk.limits import ValidationThresholds
from trade_planner.risk.validator import validate_ladder
from trade_planner.sizing.ladder import compute_ladder


def make_ladder(
    *, loss: str = "5", balance: str = "1000", **config: object
) -> TradeLadder:
    ladder = compute_ladder(
        Decimal("100"),
        Decimal(loss),
        BotConfiguration(**config),  # type: ignore[arg-type]
        MarketType.SPOT,
        Decimal(balance),
    )
    assert ladder is not None
    return ladder


def default_constraints() -> RiskProfileConstraints:
    return derive_constraints(BotConfiguration())


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------


def test_ladder_within_profile_is_safe() -> None:
    result = validate_ladder(make_ladder(), Decimal("1000"), default_constraints())
    assert result.valid
    assert result.risk_level == RiskLevel.SAFE
    assert result.warnings == []
    assert result.errors == []


def test_non_positive_balance_is_an_error() -> None:
    result = validate_ladder(make_ladder(), Decimal("0"), default_constraints())
    assert not result.valid
    assert result.risk_level == RiskLevel.DANGER
    assert "No available balance" in result.errors[0]


# ---------------------------------------------------------------------------
# Risk per trade
# ---------------------------------------------------------------------------


def test_risk_slightly_over_limit_warns() -> None:
    # 3% against a 2% limit: over the limit but not over 1.5x.
    ladder = make_ladder(risk_percentage=Decimal("3"))
    result = validate_ladder(ladder, Decimal("1000"), default_constraints())
    assert result.valid
    assert result.risk_level == RiskLevel.WARNING
    assert any("exceeds the limit" in w for w in result.warnings)


def test_risk_far_over_limit_is_danger() -> None:
    ladder = make_ladder(risk_percentage=Decimal("4"))
    result = validate_ladder(ladder, Decimal("1000"), default_constraints())
    assert not result.valid
    assert result.risk_level == RiskLevel.DANGER
    assert any("far exceeds" in e for e in result.errors)
    assert not any("exceeds the limit of" in w for w in result.warnings)


def test_risk_over_total_budget_also_warns() -> None:
    # 11% risk against a total budget of 2% x 5 trades = 10%.
    ladder = make_ladder(risk_percentage=Decimal("11"), loss="50")
    result = validate_ladder(ladder, Decimal("1000"), default_constraints())
    assert result.risk_level == RiskLevel.DANGER
    assert any("total risk budget" in w for w in result.warnings)


# ---------------------------------------------------------------------------
# DCA levels and balance utilisation
# ---------------------------------------------------------------------------


def test_too_many_dca_levels_is_danger() -> None:
    ladder = make_ladder(dca_levels=5, loss="12")
    result = validate_ladder(ladder, Decimal("1000"), default_constraints())
    assert not result.valid
    assert result.risk_level == RiskLevel.DANGER
    assert any("DCA levels (5)" in e for e in result.errors)


def test_balance_over_utilisation_warns() -> None:
    # 1% stop: 20 / 0.01 = 2000 > 95% of 1000.
    ladder = make_ladder(loss="1")
    result = validate_ladder(ladder, Decimal("1000"), default_constraints())
    assert result.valid
    assert result.risk_level == RiskLevel.WARNING
    assert any("available balance" in w for w in result.warnings)


def test_custom_thresholds_are_honoured() -> None:
    ladder = make_ladder(loss="5")
    thresholds = ValidationThresholds(balance_utilization_pct=Decimal("0.3"))
    result = validate_ladder(
        ladder, Decimal("1000"), default_constraints(), thresholds=thresholds
    )
    assert any("30% of the available balance" in w for w in result.warnings)


# ---------------------------------------------------------------------------
# Concurrent trades
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "open_trades,expected",
    [
        (None, RiskLevel.SAFE),
        (0, RiskLevel.SAFE),
        (3, RiskLevel.SAFE),
        (4, RiskLevel.WARNING),
        (5, RiskLevel.DANGER),
        (9, RiskLevel.DANGER),
    ],
)
def test_concurrent_trade_limits(open_trades: int | None, expected: RiskLevel) -> None:
    result = validate_ladder(make_ladder(), Decimal("1000"), default_constraints(), open_trades)
    assert result.risk_level == expected
    assert result.valid == (expected != RiskLevel.DANGER)


def test_rules_accumulate_without_short_circuit() -> None:
    ladder = make_ladder(risk_percentage=Decimal("4"), dca_levels=4, loss="1")
    result = validate_ladder(ladder, Decimal("1000"), default_constraints(), 4)
    assert len(result.errors) == 2
    assert len(result.warnings) == 2
    assert result.risk_level == RiskLevel.DANGER


# ---------------------------------------------------------------------------
# Monotonicity in balance
# ---------------------------------------------------------------------------


def test_more_balance_never_raises_risk_level() -> None:
    ladder = make_ladder()
    constraints = default_constraints()
    severities = [
        validate_ladder(ladder, Decimal(balance), constraints, 2).risk_level.severity
        for balance in ("0", "100", "500", "700", "1000", "5000", "1000000")
    ]
    assert severities == sorted(severities, reverse=True)
    assert severities[0] == RiskLevel.DANGER.severity
    assert severities[-1] == RiskLevel.SAFE.severity
