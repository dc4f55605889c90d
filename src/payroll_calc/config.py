"""Configuration management for the payroll calculator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from payroll_calc.calculators.tax_calculator import PflCapMode


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    tax_year: int
    pfl_cap_mode: PflCapMode
    pay_run_max_workers: int

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            tax_year=int(os.getenv("PAYROLL_TAX_YEAR", "2026")),
            pfl_cap_mode=PflCapMode(os.getenv("PAYROLL_PFL_CAP_MODE", "per_period").lower()),
            pay_run_max_workers=max(1, int(os.getenv("PAYROLL_MAX_WORKERS", "1"))),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
