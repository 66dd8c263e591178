"""
Configuration for planwise - UK tax-year constants and planning assumptions.

Tax rules change every April, so the numbers live here as versioned, frozen
records instead of inside the algorithms. Everything that computes tax or a
plan takes a ``PlanningConfig`` (or falls back to ``DEFAULT_CONFIG``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_TAX_YEAR = "2025/26"


# ── Tax-year constants ────────────────────────────────────────────────────────

class StampDutyBand(BaseModel):
    """Marginal band: ``rate`` applies to the slice between lower and upper."""
    model_config = ConfigDict(frozen=True)

    lower: float
    upper: Optional[float] = None
    rate: float


class TaxYearConfig(BaseModel):
    """UK rules for one tax year."""
    model_config = ConfigDict(frozen=True)

    tax_year: str

    # Income tax
    personal_allowance: float
    basic_rate_threshold: float = Field(description="Gross income where higher rate starts")
    higher_rate_threshold: float = Field(description="Gross income where additional rate starts")
    basic_rate: float
    higher_rate: float
    additional_rate: float

    # National Insurance (Class 1 primary)
    ni_primary_threshold: float
    ni_upper_earnings_limit: float
    ni_main_rate: float
    ni_upper_rate: float

    # Pensions
    pension_annual_allowance: float
    pension_lifetime_allowance: float
    pension_minimum_age: int
    state_pension_age: int
    state_pension_annual: float

    # ISAs
    isa_annual_limit: float
    lifetime_isa_limit: float
    lifetime_isa_bonus: float
    junior_isa_limit: float

    # Capital gains tax
    capital_gains_allowance: float

    # Mortgages
    max_income_multiple: float
    min_deposit: float
    lifetime_isa_max_price: float

    # Stamp duty land tax
    stamp_duty_bands: Tuple[StampDutyBand, ...]
    first_time_buyer_bands: Tuple[StampDutyBand, ...]
    first_time_buyer_max_price: float

    def income_tax_bands(self) -> List[Tuple[str, float, Optional[float], float]]:
        """
        Ordered (name, lower, upper, rate) bands over *taxable* income,
        i.e. income above the personal allowance.
        """
        basic_width = self.basic_rate_threshold - self.personal_allowance
        higher_top = self.higher_rate_threshold - self.personal_allowance
        return [
            ("basic", 0.0, basic_width, self.basic_rate),
            ("higher", basic_width, higher_top, self.higher_rate),
            ("additional", higher_top, None, self.additional_rate),
        ]


UK_2025_26 = TaxYearConfig(
    tax_year="2025/26",
    personal_allowance=12570,
    basic_rate_threshold=50270,
    higher_rate_threshold=125140,
    basic_rate=0.20,
    higher_rate=0.40,
    additional_rate=0.45,
    ni_primary_threshold=12570,
    ni_upper_earnings_limit=50270,
    ni_main_rate=0.12,
    ni_upper_rate=0.02,
    pension_annual_allowance=60000,
    pension_lifetime_allowance=1073100,  # abolished, kept for legacy figures
    pension_minimum_age=55,
    state_pension_age=67,
    state_pension_annual=11502,
    isa_annual_limit=20000,
    lifetime_isa_limit=4000,
    lifetime_isa_bonus=1000,
    junior_isa_limit=9000,
    capital_gains_allowance=3000,
    max_income_multiple=4.5,
    min_deposit=0.05,
    lifetime_isa_max_price=450000,
    stamp_duty_bands=(
        StampDutyBand(lower=0, upper=250000, rate=0.0),
        StampDutyBand(lower=250000, upper=925000, rate=0.05),
        StampDutyBand(lower=925000, upper=1500000, rate=0.10),
        StampDutyBand(lower=1500000, upper=None, rate=0.12),
    ),
    first_time_buyer_bands=(
        StampDutyBand(lower=0, upper=425000, rate=0.0),
        StampDutyBand(lower=425000, upper=625000, rate=0.05),
    ),
    first_time_buyer_max_price=625000,
)

TAX_YEARS: Dict[str, TaxYearConfig] = {
    UK_2025_26.tax_year: UK_2025_26,
}


def get_tax_year(name: Optional[str] = None) -> TaxYearConfig:
    """Look up a tax year by label ("2025/26"); unknown labels fall back to the default."""
    if not name:
        return TAX_YEARS[DEFAULT_TAX_YEAR]
    return TAX_YEARS.get(name.strip(), TAX_YEARS[DEFAULT_TAX_YEAR])


# ── Planning assumptions ──────────────────────────────────────────────────────

class AssetAllocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    cash: int
    bonds: int
    equities: int
    alternatives: int
    expected_return: float


class PremiumRates(BaseModel):
    """Rough premium rates for one age band (annual rate on cover amount)."""
    model_config = ConfigDict(frozen=True)

    max_age: Optional[int] = None
    life: float
    income: float
    critical: float


class PlanningAssumptions(BaseModel):
    """Rules of thumb the planners use where the conversation is silent."""
    model_config = ConfigDict(frozen=True)

    # There is no age question in the chat flow yet
    current_age: int = 35

    # Retirement
    default_retirement_age: int = 67
    income_replacement: float = 0.70
    withdrawal_rate: float = 0.04
    pension_return: float = 0.05
    contribution_surplus_share: float = 0.80
    employer_match_rate: float = 0.05
    extra_pension_surplus_share: float = 0.30

    # House purchase
    default_house_price: float = 300000
    default_house_timeframe_years: float = 5
    recommended_deposit: float = 0.15
    optimal_deposit: float = 0.20
    first_time_buyer: bool = True
    legal_fees: float = 2000
    survey_fees: float = 800
    moving_costs: float = 2000

    # Investment
    emergency_fund_months: int = 6
    emergency_fund_reserve: float = 500
    default_risk_level: str = "medium"
    investment_horizons: Tuple[int, ...] = (5, 10, 15, 20)
    allocations: Dict[str, AssetAllocation] = Field(default_factory=lambda: {
        "low": AssetAllocation(cash=20, bonds=60, equities=20, alternatives=0, expected_return=0.04),
        "medium": AssetAllocation(cash=10, bonds=40, equities=45, alternatives=5, expected_return=0.06),
        "high": AssetAllocation(cash=5, bonds=20, equities=65, alternatives=10, expected_return=0.08),
    })

    # Protection
    life_cover_multiple: float = 10
    income_protection_share: float = 0.65
    critical_illness_multiple: float = 4
    max_premium_share: float = 0.10
    premium_rates: Tuple[PremiumRates, ...] = (
        PremiumRates(max_age=30, life=0.0002, income=0.02, critical=0.0003),
        PremiumRates(max_age=40, life=0.0003, income=0.025, critical=0.0005),
        PremiumRates(max_age=None, life=0.0005, income=0.03, critical=0.0008),
    )

    # Review cycle
    review_interval_months: int = 6


class PlanningConfig(BaseModel):
    """Everything a planner needs: the tax year and the assumptions."""
    model_config = ConfigDict(frozen=True)

    tax_year: TaxYearConfig = UK_2025_26
    assumptions: PlanningAssumptions = Field(default_factory=PlanningAssumptions)


class ExtractionSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Old chat data was parsed with "any k in the message scales every amount"
    legacy_k_scaling: bool = False
    # Used for per-income tax figures and for how soon an "at age 60" deadline falls
    tax_year: TaxYearConfig = UK_2025_26
    current_age: int = 35


DEFAULT_CONFIG = PlanningConfig()
DEFAULT_EXTRACTION_SETTINGS = ExtractionSettings()


# ── Environment ───────────────────────────────────────────────────────────────

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    planning: PlanningConfig
    extraction: ExtractionSettings
    log_dir: Optional[str] = None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build settings from the environment (and a ``.env`` file if present).

    Recognised variables: PLANWISE_TAX_YEAR, PLANWISE_CURRENT_AGE,
    PLANWISE_LEGACY_K_SCALING, PLANWISE_LOG_DIR.
    """
    load_dotenv(dotenv_path=env_file or Path.cwd() / ".env")

    tax_year = get_tax_year(os.getenv("PLANWISE_TAX_YEAR"))
    current_age = _env_int("PLANWISE_CURRENT_AGE", PlanningAssumptions().current_age)
    if current_age <= 0:
        current_age = PlanningAssumptions().current_age

    return Settings(
        planning=PlanningConfig(
            tax_year=tax_year,
            assumptions=PlanningAssumptions(current_age=current_age),
        ),
        extraction=ExtractionSettings(
            legacy_k_scaling=_env_bool("PLANWISE_LEGACY_K_SCALING", False),
            tax_year=tax_year,
            current_age=current_age,
        ),
        log_dir=os.getenv("PLANWISE_LOG_DIR") or None,
    )
