"""
API routes for the calculators.
"""

from fastapi import APIRouter

from realtor_tools.api import calculations, presets

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(presets.router, prefix="/presets", tags=["presets"])
