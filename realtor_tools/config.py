"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings

from realtor_tools.calculations.common import CalculatorConfig


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Realtor Tools"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Calculator defaults
    front_end_ratio_cap_percent: float = 28.0
    back_end_ratio_cap_percent: float = 36.0
    max_schedule_months: int = 360
    max_projection_years: int = 30
    cma_band_percent: float = 8.0
    cma_min_band_percent: float = 2.0
    cma_bedroom_adjustment: float = 0.0
    cma_bathroom_adjustment: float = 0.0

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    def calculator_config(self) -> CalculatorConfig:
        """Explicit configuration handed to each calculator call."""
        return CalculatorConfig(
            front_end_ratio_cap_percent=self.front_end_ratio_cap_percent,
            back_end_ratio_cap_percent=self.back_end_ratio_cap_percent,
            max_schedule_months=self.max_schedule_months,
            max_projection_years=self.max_projection_years,
            cma_band_percent=self.cma_band_percent,
            cma_min_band_percent=self.cma_min_band_percent,
            bedroom_adjustment=self.cma_bedroom_adjustment,
            bathroom_adjustment=self.cma_bathroom_adjustment,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
