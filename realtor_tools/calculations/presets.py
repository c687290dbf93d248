"""
Calculator Presets

Location-based seller closing costs and the loan programs used for
prequalification. These are default arguments only; every calculator
accepts its own mapping.
"""

from typing import Dict, List, Mapping, Optional, Tuple
from dataclasses import dataclass


@dataclass(frozen=True)
class LocationCostPreset:
    """Typical seller-side closing costs for a state."""

    name: str
    transfer_tax_percent: float  # % of sale price
    title_insurance_percent: float  # % of sale price
    attorney_fees: float  # flat $
    recording_fees: float  # flat $
    escrow_fees_percent: float  # % of sale price
    property_tax_rate_percent: float  # annual % of sale price

    def line_items(self, sale_price: float) -> Dict[str, float]:
        """Resolve the preset into dollar line items for a sale price."""
        items = {
            "Transfer Tax": sale_price * self.transfer_tax_percent / 100,
            "Title Insurance": sale_price * self.title_insurance_percent / 100,
            "Attorney Fees": self.attorney_fees,
            "Recording Fees": self.recording_fees,
            "Escrow/Settlement Fees": sale_price * self.escrow_fees_percent / 100,
            # Prorated taxes assume half a year is owed at closing
            "Prorated Property Taxes": sale_price
            * self.property_tax_rate_percent
            / 100
            / 2,
        }
        return {label: amount for label, amount in items.items() if amount > 0}


DEFAULT_LOCATION = "DEFAULT"

LOCATION_COST_PRESETS: Mapping[str, LocationCostPreset] = {
    "CA": LocationCostPreset("California", 0.55, 0.8, 0, 150, 0.2, 0.75),
    "NY": LocationCostPreset("New York", 4.0, 0.6, 1500, 200, 0.1, 1.68),
    "NJ": LocationCostPreset("New Jersey", 1.0, 0.7, 1200, 100, 0.15, 1.79),
    "FL": LocationCostPreset("Florida", 0.7, 0.5, 800, 75, 0.25, 0.83),
    "TX": LocationCostPreset("Texas", 0.0, 0.9, 0, 50, 0.2, 1.60),
    "WA": LocationCostPreset("Washington", 1.28, 0.8, 0, 100, 0.3, 0.94),
    "IL": LocationCostPreset("Illinois", 1.5, 0.7, 1000, 150, 0.2, 2.16),
    "PA": LocationCostPreset("Pennsylvania", 1.0, 0.5, 1200, 100, 0.1, 1.58),
    "OH": LocationCostPreset("Ohio", 0.4, 0.6, 800, 75, 0.15, 1.52),
    "GA": LocationCostPreset("Georgia", 0.1, 0.7, 800, 50, 0.2, 0.83),
    "NC": LocationCostPreset("North Carolina", 0.2, 0.6, 1000, 75, 0.15, 0.84),
    DEFAULT_LOCATION: LocationCostPreset("Other Location", 0.5, 0.7, 800, 100, 0.2, 1.07),
}

# Inclusive 5-digit ZIP ranges
ZIP_RANGES: List[Tuple[int, int, str]] = [
    (90000, 96699, "CA"),
    (10000, 14999, "NY"),
    (7000, 8999, "NJ"),
    (32000, 34999, "FL"),
    (75000, 79999, "TX"),
    (98000, 99499, "WA"),
    (60000, 62999, "IL"),
    (15000, 19699, "PA"),
    (43000, 45999, "OH"),
    (30000, 31999, "GA"),
    (27000, 28999, "NC"),
]


def state_from_zip(zip_code: str) -> str:
    """Map a ZIP code to a preset state code, or DEFAULT."""
    digits = zip_code.strip()[:5]
    if len(digits) < 5 or not digits.isdigit():
        return DEFAULT_LOCATION

    zip_num = int(digits)
    for low, high, state in ZIP_RANGES:
        if low <= zip_num <= high:
            return state
    return DEFAULT_LOCATION


def resolve_location(
    location: Optional[str],
    presets: Mapping[str, LocationCostPreset] = LOCATION_COST_PRESETS,
) -> Optional[str]:
    """
    Resolve a state code or ZIP code to a preset key.

    Returns None when no location is given. Unknown locations resolve to
    the DEFAULT preset.
    """
    if location is None or not location.strip():
        return None

    key = location.strip().upper()
    if key.isdigit():
        key = state_from_zip(key)

    if key in presets:
        return key
    return DEFAULT_LOCATION


@dataclass(frozen=True)
class LoanProgram:
    """DTI limits and minimum down payment for a loan program."""

    name: str
    housing_ratio_percent: float  # front-end cap
    total_ratio_percent: float  # back-end cap
    min_down_payment_percent: float
    description: str = ""


LOAN_PROGRAMS: List[LoanProgram] = [
    LoanProgram(
        name="Conventional",
        housing_ratio_percent=28,
        total_ratio_percent=36,
        min_down_payment_percent=5.0,
        description="Standard conventional loan with competitive rates",
    ),
    LoanProgram(
        name="FHA",
        housing_ratio_percent=31,
        total_ratio_percent=43,
        min_down_payment_percent=3.5,
        description="Government-backed loan with more flexible requirements",
    ),
]
