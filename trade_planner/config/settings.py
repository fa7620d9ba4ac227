from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from trade_planner.risk.limits import ConstraintDefaults, ValidationThresholds


class Settings(BaseSettings):
    # Sizing
    dca_step_pct: Decimal = Field(default=Decimal("2"), gt=Decimal("0"))

    # Execution filters
    cooldown_minutes: int = Field(default=15, ge=0)
    min_execution_confidence: Decimal = Field(default=Decimal("70"))

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    event_log_enabled: bool = Field(default=True)

    # Risk (immutable, loaded once)
    constraint_defaults: ConstraintDefaults = Field(default_factory=ConstraintDefaults)
    thresholds: ValidationThresholds = Field(default_factory=ValidationThresholds)

    model_config = SettingsConfigDict(
        env_prefix="TRADE_PLANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @classmethod
    def load_safe(cls) -> "Settings":
        """Load settings, falling back to defaults on any config failure"""
        try:
            return cls()
        except Exception:
            return cls.model_construct(
                dca_step_pct=Decimal("2"),
                cooldown_minutes=15,
                min_execution_confidence=Decimal("70"),
                log_level="INFO",
                log_dir=Path("logs"),
                event_log_enabled=True,
                constraint_defaults=ConstraintDefaults(),
                thresholds=ValidationThresholds(),
            )
