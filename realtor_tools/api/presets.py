"""
Preset lookup endpoints (closing-cost presets and loan programs).
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import Dict, List

from realtor_tools.calculations.presets import (
    DEFAULT_LOCATION,
    LOAN_PROGRAMS,
    LOCATION_COST_PRESETS,
    LocationCostPreset,
    resolve_location,
)

router = APIRouter()


class LocationPresetOut(BaseModel):
    code: str
    name: str
    transfer_tax_percent: float
    title_insurance_percent: float
    attorney_fees: float
    recording_fees: float
    escrow_fees_percent: float
    property_tax_rate_percent: float


class LoanProgramOut(BaseModel):
    name: str
    housing_ratio_percent: float
    total_ratio_percent: float
    min_down_payment_percent: float
    description: str


def _preset_out(code: str, preset: LocationCostPreset) -> LocationPresetOut:
    return LocationPresetOut(
        code=code,
        name=preset.name,
        transfer_tax_percent=preset.transfer_tax_percent,
        title_insurance_percent=preset.title_insurance_percent,
        attorney_fees=preset.attorney_fees,
        recording_fees=preset.recording_fees,
        escrow_fees_percent=preset.escrow_fees_percent,
        property_tax_rate_percent=preset.property_tax_rate_percent,
    )


@router.get("/closing-costs", response_model=Dict[str, LocationPresetOut])
async def list_closing_cost_presets():
    """List seller closing-cost presets by state."""
    return {
        code: _preset_out(code, preset)
        for code, preset in LOCATION_COST_PRESETS.items()
    }


@router.get("/closing-costs/{location}", response_model=LocationPresetOut)
async def get_closing_cost_preset(location: str):
    """
    Resolve a state code or ZIP code to its closing-cost preset.

    Unknown locations resolve to the DEFAULT preset, as in the net sheet.
    """
    code = resolve_location(location) or DEFAULT_LOCATION
    return _preset_out(code, LOCATION_COST_PRESETS[code])


@router.get("/loan-programs", response_model=List[LoanProgramOut])
async def list_loan_programs():
    """List loan programs used for prequalification."""
    return [
        LoanProgramOut(
            name=program.name,
            housing_ratio_percent=program.housing_ratio_percent,
            total_ratio_percent=program.total_ratio_percent,
            min_down_payment_percent=program.min_down_payment_percent,
            description=program.description,
        )
        for program in LOAN_PROGRAMS
    ]
