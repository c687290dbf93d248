"""
Financial Calculation Engine

Pure calculators behind the agent toolkit: amortization, prequalification,
rental investment analysis, seller net sheet and quick CMA.
"""

from realtor_tools.calculations import (
    amortization,
    cma,
    investment,
    irr,
    net_sheet,
    prequalification,
    presets,
)
from realtor_tools.calculations.common import (
    CalculatorConfig,
    InvalidInput,
    NotApplicable,
    Ratio,
    Value,
)

__all__ = [
    "amortization",
    "cma",
    "investment",
    "irr",
    "net_sheet",
    "prequalification",
    "presets",
    "CalculatorConfig",
    "InvalidInput",
    "NotApplicable",
    "Ratio",
    "Value",
]
