"""
Quick Comparative Market Analysis

Values a subject property from comparable sales by weighted average price
per square foot. Closer and more recent comparables weigh more.

Band methods:
    fixed: +/- cma_band_percent around the estimate
    stdev: weighted coefficient of variation of comparable price per square
           foot, floored at cma_min_band_percent
"""

from typing import List, Optional
from datetime import date
from dataclasses import dataclass, field
from dateutil.relativedelta import relativedelta
import numpy as np

from realtor_tools.calculations.common import (
    CalculatorConfig,
    DEFAULT_CONFIG,
    InvalidInput,
    require_non_negative,
    require_positive,
)

BAND_METHODS = ("fixed", "stdev")
DAYS_PER_MONTH = 30


@dataclass
class Comparable:
    sale_price: float
    square_footage: float
    sale_date: Optional[date] = None
    distance_miles: Optional[float] = None
    adjustment_factor: Optional[float] = None  # >1 discounts the comparable
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    days_on_market: Optional[int] = None
    address: Optional[str] = None


@dataclass
class CMAInput:
    square_footage: float
    comparables: List[Comparable]
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    as_of: Optional[date] = None
    band_method: str = "fixed"


@dataclass
class ComparableAnalysis:
    address: Optional[str]
    adjusted_price: float
    price_per_square_foot: float
    weight: float


@dataclass
class CMAResult:
    estimated_value: float
    value_range_low: float
    value_range_high: float
    price_per_square_foot_used: float
    band_percent: float
    comparables: List[ComparableAnalysis] = field(default_factory=list)
    average_days_on_market: Optional[float] = None
    absorption_months: Optional[float] = None


def months_between(start: date, end: date) -> float:
    """Fractional months from start to end, zero if end precedes start."""
    if end <= start:
        return 0.0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months + delta.days / DAYS_PER_MONTH


def _validate(inputs: CMAInput) -> None:
    require_positive(inputs.square_footage, "square_footage")
    if not inputs.comparables:
        raise InvalidInput("At least one comparable is required", "comparables")
    if inputs.band_method not in BAND_METHODS:
        raise InvalidInput(
            f"band_method must be one of {', '.join(BAND_METHODS)}", "band_method"
        )

    for comp in inputs.comparables:
        require_positive(comp.square_footage, "comparables.square_footage")
        require_positive(comp.sale_price, "comparables.sale_price")
        if comp.distance_miles is not None:
            require_non_negative(comp.distance_miles, "comparables.distance_miles")
        if comp.adjustment_factor is not None:
            require_positive(comp.adjustment_factor, "comparables.adjustment_factor")


def adjusted_sale_price(
    comp: Comparable, inputs: CMAInput, config: CalculatorConfig
) -> float:
    """Sale price adjusted for bedroom and bathroom differences."""
    price = comp.sale_price
    if inputs.bedrooms is not None and comp.bedrooms is not None:
        price += (inputs.bedrooms - comp.bedrooms) * config.bedroom_adjustment
    if inputs.bathrooms is not None and comp.bathrooms is not None:
        price += (inputs.bathrooms - comp.bathrooms) * config.bathroom_adjustment

    if price <= 0:
        raise InvalidInput(
            "Adjusted comparable price must be greater than zero",
            "comparables.sale_price",
        )
    return price


def comparable_weight(comp: Comparable, as_of: Optional[date]) -> float:
    """Inverse of the distance, recency and explicit adjustment discounts."""
    divisor = 1.0
    if comp.distance_miles is not None:
        divisor *= 1 + comp.distance_miles
    if comp.sale_date is not None and as_of is not None:
        divisor *= 1 + months_between(comp.sale_date, as_of) / 12
    if comp.adjustment_factor is not None:
        divisor *= comp.adjustment_factor
    return 1 / divisor


def estimate_value(
    inputs: CMAInput, config: Optional[CalculatorConfig] = None
) -> CMAResult:
    """
    Estimate subject value and range from comparable sales.

    Recency is measured from ``as_of``, or from the most recent comparable
    sale date when ``as_of`` is not given.

    Raises:
        InvalidInput: For no comparables, non-positive subject or comparable
            square footage (the whole batch is rejected), non-positive sale
            prices, or an unknown band method
    """
    config = config or DEFAULT_CONFIG
    _validate(inputs)

    as_of = inputs.as_of
    if as_of is None:
        sale_dates = [c.sale_date for c in inputs.comparables if c.sale_date]
        as_of = max(sale_dates) if sale_dates else None

    adjusted = np.array(
        [adjusted_sale_price(c, inputs, config) for c in inputs.comparables]
    )
    footage = np.array([c.square_footage for c in inputs.comparables], dtype=float)
    ppsf = adjusted / footage
    weights = np.array([comparable_weight(c, as_of) for c in inputs.comparables])

    ppsf_used = float(np.average(ppsf, weights=weights))
    estimated_value = ppsf_used * inputs.square_footage

    if inputs.band_method == "stdev":
        variance = np.average((ppsf - ppsf_used) ** 2, weights=weights)
        band = max(float(np.sqrt(variance)) / ppsf_used, config.cma_min_band_percent / 100)
    else:
        band = config.cma_band_percent / 100
    band = min(max(band, 0.0), 1.0)

    days = [c.days_on_market for c in inputs.comparables if c.days_on_market is not None]
    average_dom = float(np.mean(days)) if days else None

    normalized = weights / weights.sum()
    comparables = [
        ComparableAnalysis(
            address=comp.address,
            adjusted_price=float(price),
            price_per_square_foot=float(rate),
            weight=float(weight),
        )
        for comp, price, rate, weight in zip(
            inputs.comparables, adjusted, ppsf, normalized
        )
    ]

    return CMAResult(
        estimated_value=estimated_value,
        value_range_low=estimated_value * (1 - band),
        value_range_high=estimated_value * (1 + band),
        price_per_square_foot_used=ppsf_used,
        band_percent=band * 100,
        comparables=comparables,
        average_days_on_market=average_dom,
        absorption_months=(
            average_dom / DAYS_PER_MONTH if average_dom is not None else None
        ),
    )
