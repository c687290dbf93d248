"""
Main FastAPI application entry point.
"""

import logging
from fastapi import FastAPI

from realtor_tools.config import get_settings
from realtor_tools.api import router as api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Financial calculators for real estate agents",
    version=settings.app_version,
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": settings.app_version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("realtor_tools.main:app", host=settings.host, port=settings.port)
