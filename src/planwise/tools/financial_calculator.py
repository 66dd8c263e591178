"""
Financial Calculator Tools for planwise - annuity maths, stamp duty, premiums and projections
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.tools import tool

from planwise.config import DEFAULT_CONFIG, PremiumRates, TaxYearConfig


def round_half_up(value: float, ndigits: int = 0):
    """Round halves up (2.5 -> 3, where ``round`` gives 2); an int when ``ndigits`` is 0."""
    if ndigits == 0:
        return math.floor(value + 0.5)
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def banded_marginal_tax(amount: float, bands: Sequence[Tuple[float, Optional[float], float]]) -> float:
    """
    Marginal tax over ordered ``(lower, upper, rate)`` bands.

    Each rate applies only to the slice of ``amount`` inside its band; an
    ``upper`` of None means the band is open-ended.
    """
    total = 0.0
    for lower, upper, rate in bands:
        top = amount if upper is None else min(amount, upper)
        if top > lower:
            total += (top - lower) * rate
    return total


def future_value_of_annuity(monthly_payment: float, annual_rate: float, years: float) -> float:
    """
    Future value of a monthly payment stream.

    FV = PMT * ((1 + r)^n - 1) / r, with r the monthly rate and n the number
    of months; PMT * n when the rate is zero.
    """
    if monthly_payment <= 0 or years <= 0:
        return 0.0

    monthly_rate = annual_rate / 12
    periods = years * 12
    if monthly_rate == 0:
        return monthly_payment * periods
    return monthly_payment * ((1 + monthly_rate) ** periods - 1) / monthly_rate


def required_monthly_contribution(future_value: float, years: float, annual_return: float) -> int:
    """Monthly payment that grows to ``future_value`` over ``years``, whole pounds."""
    if years <= 0 or future_value <= 0:
        return 0

    monthly_rate = annual_return / 12
    periods = years * 12
    if monthly_rate == 0:
        return round_half_up(future_value / periods)
    return round_half_up(future_value * monthly_rate / ((1 + monthly_rate) ** periods - 1))


def calculate_stamp_duty(
    price: float,
    first_time_buyer: bool = True,
    tax_year: Optional[TaxYearConfig] = None,
) -> int:
    """
    Stamp duty land tax on a purchase, whole pounds.

    First-time buyers get the relief schedule up to the relief price cap;
    above the cap the standard bands apply to the whole price.
    """
    tax_year = tax_year or DEFAULT_CONFIG.tax_year
    if price <= 0:
        return 0

    if first_time_buyer and price <= tax_year.first_time_buyer_max_price:
        bands = tax_year.first_time_buyer_bands
    else:
        bands = tax_year.stamp_duty_bands

    return round_half_up(banded_marginal_tax(price, [(b.lower, b.upper, b.rate) for b in bands]))


def _premium_band(age: int, rates: Sequence[PremiumRates]) -> PremiumRates:
    for band in rates:
        if band.max_age is None or age < band.max_age:
            return band
    return rates[-1]


def estimate_insurance_premiums(
    life_cover: float,
    income_cover: float,
    critical_cover: float,
    age: int,
    rates: Optional[Sequence[PremiumRates]] = None,
) -> Dict[str, int]:
    """
    Rough monthly premiums for protection cover.

    Life and critical illness rates are annual rates on the cover amount;
    the income protection rate applies to the monthly benefit.
    """
    band = _premium_band(age, rates or DEFAULT_CONFIG.assumptions.premium_rates)

    life = round_half_up(life_cover * band.life / 12)
    income = round_half_up(income_cover * band.income)
    critical = round_half_up(critical_cover * band.critical / 12)

    return {
        "life": life,
        "income": income,
        "critical": critical,
        "total": life + income + critical,
    }


def project_growth(
    current_value: float,
    monthly_contribution: float,
    years: float,
    annual_return: float,
) -> Dict[str, Any]:
    """Value of a pot after ``years`` of growth plus monthly contributions."""
    years = max(0, years)
    contribution = max(0.0, monthly_contribution)

    grown_current = current_value * (1 + annual_return) ** years
    grown_contributions = future_value_of_annuity(contribution, annual_return, years)
    projected = grown_current + grown_contributions
    total_contributions = contribution * years * 12

    return {
        "years": years,
        "projected_value": round_half_up(projected),
        "total_contributions": round(total_contributions, 2),
        "investment_growth": round_half_up(projected - current_value - total_contributions),
    }


def investment_projections(
    monthly_investment: float,
    expected_return: float,
    horizons: Sequence[int],
) -> List[Dict[str, Any]]:
    """Projections of a monthly investment at each horizon (in years)."""
    projections = []
    for years in horizons:
        projection = project_growth(0, monthly_investment, years, expected_return)
        contributed = projection["total_contributions"]
        future_value = future_value_of_annuity(max(0.0, monthly_investment), expected_return, years)
        projection["return_multiple"] = (
            round_half_up(future_value / contributed, 2) if contributed > 0 else 0
        )
        projections.append(projection)
    return projections


# ── LangChain tools ───────────────────────────────────────────────────────────

@tool
def calculate_uk_stamp_duty(
    property_price: float,
    first_time_buyer: bool = True
) -> Dict[str, Any]:
    """
    Calculate UK stamp duty land tax on a property purchase.

    First-time buyers pay nothing up to £425,000 and 5% on the slice up to
    £625,000; above £625,000 the standard bands apply.

    Args:
        property_price: Purchase price in pounds
        first_time_buyer: Whether first-time buyer relief applies

    Returns:
        Dict with the stamp duty and effective rate
    """
    if property_price < 0:
        return {"error": "property_price must not be negative"}

    duty = calculate_stamp_duty(property_price, first_time_buyer)
    return {
        "calculation_type": "UK Stamp Duty",
        "property_price": round(property_price, 2),
        "first_time_buyer": first_time_buyer,
        "stamp_duty": duty,
        "effective_rate": f"{(duty / property_price * 100) if property_price else 0:.2f}%",
        "tax_year": DEFAULT_CONFIG.tax_year.tax_year
    }


@tool
def calculate_required_monthly_saving(
    target_amount: float,
    years: float,
    annual_return: float = 5
) -> Dict[str, Any]:
    """
    Calculate the monthly saving needed to reach a target amount.

    Solves FV = PMT * ((1 + r)^n - 1) / r for PMT with monthly compounding.

    Args:
        target_amount: Amount to reach in pounds
        years: Time to reach it, in years
        annual_return: Expected annual return as percentage (e.g., 5 for 5%)

    Returns:
        Dict with the monthly saving and the split between contributions and growth
    """
    if years <= 0:
        return {"error": "years must be positive"}

    monthly = required_monthly_contribution(target_amount, years, annual_return / 100)
    contributed = monthly * years * 12
    return {
        "calculation_type": "Required Monthly Saving",
        "target_amount": round(target_amount, 2),
        "years": years,
        "annual_return": f"{annual_return}%",
        "monthly_saving": monthly,
        "total_contributions": round(contributed, 2),
        "growth_needed": round(max(0, target_amount - contributed), 2)
    }


@tool
def project_savings_growth(
    current_value: float,
    monthly_contribution: float,
    years: float,
    annual_return: float = 5
) -> Dict[str, Any]:
    """
    Project the value of savings or a pension pot with monthly contributions.

    Args:
        current_value: Value today in pounds
        monthly_contribution: Amount added each month
        years: Projection length in years
        annual_return: Expected annual return as percentage (e.g., 5 for 5%)

    Returns:
        Dict with projected value, contributions and growth
    """
    if years < 0:
        return {"error": "years must not be negative"}

    projection = project_growth(current_value, monthly_contribution, years, annual_return / 100)
    projection["calculation_type"] = "Savings Growth Projection"
    projection["annual_return"] = f"{annual_return}%"
    projection["sustainable_monthly_income"] = round_half_up(projection["projected_value"] * 0.04 / 12)
    return projection


@tool
def estimate_protection_premiums(
    annual_gross_income: float,
    age: int = 35
) -> Dict[str, Any]:
    """
    Estimate protection cover and monthly premiums for an income.

    Life cover is 10x gross income, income protection 65% of monthly gross,
    critical illness 4x gross income.

    Args:
        annual_gross_income: Gross annual income in pounds
        age: Age of the person being covered

    Returns:
        Dict with cover amounts and monthly premiums
    """
    if annual_gross_income < 0:
        return {"error": "annual_gross_income must not be negative"}

    assumptions = DEFAULT_CONFIG.assumptions
    life_cover = annual_gross_income * assumptions.life_cover_multiple
    income_cover = round_half_up(annual_gross_income / 12 * assumptions.income_protection_share)
    critical_cover = annual_gross_income * assumptions.critical_illness_multiple

    return {
        "calculation_type": "Protection Premium Estimate",
        "life_cover": round(life_cover, 2),
        "income_protection": income_cover,
        "critical_illness_cover": round(critical_cover, 2),
        "monthly_premiums": estimate_insurance_premiums(life_cover, income_cover, critical_cover, age)
    }


# Export all tools
FINANCIAL_CALCULATOR_TOOLS = [
    calculate_uk_stamp_duty,
    calculate_required_monthly_saving,
    project_savings_growth,
    estimate_protection_premiums
]
