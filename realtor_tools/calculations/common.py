"""
Shared Types for the Calculators

Error type, the ratio result variant, and the explicit configuration record
handed to every calculator.
"""

from typing import Optional, Union
from dataclasses import dataclass


class InvalidInput(ValueError):
    """Raised when a calculator input is malformed or out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class Value:
    """A computed ratio."""

    amount: float

    @property
    def applicable(self) -> bool:
        return True


@dataclass(frozen=True)
class NotApplicable:
    """A ratio whose denominator is zero."""

    reason: str

    @property
    def applicable(self) -> bool:
        return False


Ratio = Union[Value, NotApplicable]


def safe_ratio(numerator: float, denominator: float, reason: str) -> Ratio:
    """
    Divide, returning NotApplicable instead of Infinity or NaN.

    Args:
        numerator: Ratio numerator
        denominator: Ratio denominator
        reason: Explanation reported when the denominator is zero

    Returns:
        Value or NotApplicable
    """
    if denominator == 0:
        return NotApplicable(reason)
    return Value(numerator / denominator)


@dataclass(frozen=True)
class CalculatorConfig:
    """Explicit calculator configuration (DTI caps, bounds, CMA band)."""

    front_end_ratio_cap_percent: float = 28.0
    back_end_ratio_cap_percent: float = 36.0
    max_schedule_months: int = 360
    max_projection_years: int = 30
    cma_band_percent: float = 8.0
    cma_min_band_percent: float = 2.0
    bedroom_adjustment: float = 0.0  # $ per bedroom difference
    bathroom_adjustment: float = 0.0  # $ per bathroom difference


DEFAULT_CONFIG = CalculatorConfig()


def require_non_negative(value: float, field: str) -> None:
    if value < 0:
        raise InvalidInput(f"{field} must not be negative", field)


def require_positive(value: float, field: str) -> None:
    if value <= 0:
        raise InvalidInput(f"{field} must be greater than zero", field)


def require_percent(value: float, field: str) -> None:
    if value < 0 or value > 100:
        raise InvalidInput(f"{field} must be between 0 and 100", field)


def require_term(term_months: int, config: CalculatorConfig) -> None:
    """Validate a loan term against the configured schedule bound."""
    if term_months <= 0:
        raise InvalidInput("term_months must be greater than zero", "term_months")
    if term_months > config.max_schedule_months:
        raise InvalidInput(
            f"term_months must not exceed {config.max_schedule_months}",
            "term_months",
        )
