"""
Seller Net Sheet

Estimated net proceeds from a sale after loan payoff, commission and
closing costs. Location presets supply default closing-cost line items that
user-entered items override by label.
"""

from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass, field

from realtor_tools.calculations.common import require_non_negative, require_percent
from realtor_tools.calculations.presets import (
    LOCATION_COST_PRESETS,
    LocationCostPreset,
    resolve_location,
)

COMMISSION_LABEL = "Real Estate Commission"


@dataclass
class NetSheetInput:
    sale_price: float
    mortgage_payoff: float = 0.0
    commission_rate_percent: float = 6.0
    closing_costs: Mapping[str, float] = field(default_factory=dict)
    location: Optional[str] = None


@dataclass
class NetSheetLineItem:
    label: str
    amount: float
    percent_of_sale: float
    source: str  # "commission", "preset" or "user"


@dataclass
class NetSheetResult:
    sale_price: float
    mortgage_payoff: float
    commission_amount: float
    total_costs: float
    net_proceeds: float
    line_items: List[NetSheetLineItem]
    location_code: Optional[str] = None
    location_name: Optional[str] = None


def merge_closing_costs(
    preset_items: Mapping[str, float], user_items: Mapping[str, float]
) -> Dict[str, tuple]:
    """
    Merge preset and user line items.

    Labels match case-insensitively. A user amount replaces the preset
    amount and keeps the user's spelling of the label. User items that
    share a label are added together.

    Returns:
        Mapping of normalized label -> (display label, amount, source)
    """
    merged = {}
    for label, amount in preset_items.items():
        merged[label.strip().lower()] = (label, amount, "preset")
    for label, amount in user_items.items():
        key = label.strip().lower()
        existing = merged.get(key)
        if existing is not None and existing[2] == "user":
            merged[key] = (existing[0], existing[1] + amount, "user")
        else:
            merged[key] = (label.strip(), amount, "user")
    return merged


def compute_net_sheet(
    inputs: NetSheetInput,
    presets: Mapping[str, LocationCostPreset] = LOCATION_COST_PRESETS,
) -> NetSheetResult:
    """
    Calculate seller net proceeds.

    A negative result is valid: the seller has to bring money to closing.

    Raises:
        InvalidInput: For a negative sale price, payoff or closing-cost
            amount, or a commission rate outside 0-100
    """
    require_non_negative(inputs.sale_price, "sale_price")
    require_non_negative(inputs.mortgage_payoff, "mortgage_payoff")
    require_percent(inputs.commission_rate_percent, "commission_rate_percent")
    for amount in inputs.closing_costs.values():
        require_non_negative(amount, "closing_costs")

    sale_price = inputs.sale_price
    commission_amount = sale_price * inputs.commission_rate_percent / 100

    location_code = resolve_location(inputs.location, presets)
    preset = presets.get(location_code) if location_code else None
    preset_items = preset.line_items(sale_price) if preset else {}

    merged = merge_closing_costs(preset_items, inputs.closing_costs)

    line_items = [
        NetSheetLineItem(
            label=COMMISSION_LABEL,
            amount=commission_amount,
            percent_of_sale=inputs.commission_rate_percent,
            source="commission",
        )
    ]
    for label, amount, source in merged.values():
        line_items.append(
            NetSheetLineItem(
                label=label,
                amount=amount,
                percent_of_sale=amount / sale_price * 100 if sale_price else 0.0,
                source=source,
            )
        )
    line_items.sort(key=lambda item: item.amount, reverse=True)

    total_costs = sum(item.amount for item in line_items)
    net_proceeds = sale_price - inputs.mortgage_payoff - total_costs

    return NetSheetResult(
        sale_price=sale_price,
        mortgage_payoff=inputs.mortgage_payoff,
        commission_amount=commission_amount,
        total_costs=total_costs,
        net_proceeds=net_proceeds,
        line_items=line_items,
        location_code=location_code if preset else None,
        location_name=preset.name if preset else None,
    )
