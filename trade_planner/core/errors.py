"""Exceptions raised at the planner's parsing boundary.

The pure calculators never raise for bad input; they return ``None`` or an
ineligible/invalid result instead.
"""

from __future__ import annotations


class TradePlannerError(Exception):
    pass


class ConfigurationError(TradePlannerError):
    """A settings row or environment value failed validation."""
