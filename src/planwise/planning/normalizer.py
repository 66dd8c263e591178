"""
Income/Expense Normalizer - frequency conversion plus UK Income Tax and National Insurance.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from planwise.config import DEFAULT_CONFIG, TaxYearConfig
from planwise.tools.financial_calculator import banded_marginal_tax, round_half_up
from planwise.utils.rules import compile_rules, first_match


INCOME_TYPE_RULES = compile_rules(
    (r"salary|employment|\bjob\b|wage", "employment"),
    (r"self-employed|self employed|business|freelance", "self-employment"),
    (r"pension|retirement", "pension"),
    (r"rental|property", "rental"),
    (r"dividend|investment", "investment"),
    (r"benefit|allowance", "benefits"),
)

EXPENSE_RULES = compile_rules(
    (r"rent|mortgage|housing", "housing"),
    (r"food|groceries|eating|restaurant|takeaway", "food"),
    (r"transport|\bcar\b|petrol|fuel|travel|train|\bbus\b", "transport"),
    (r"utilities|electric|\bgas\b|water|internet|phone", "utilities"),
    (r"insurance|protection", "insurance"),
    (r"entertainment|leisure|subscription|netflix|cinema", "entertainment"),
    (r"health|medical|dental|gym", "healthcare"),
)


def categorize_income_type(description: Optional[str], category: Optional[str] = None) -> str:
    """Tax treatment bucket for an income description."""
    found = first_match(INCOME_TYPE_RULES, description)
    if found:
        return found
    if category and category != "other":
        return category
    return "other"


def categorize_expense_type(description: Optional[str], category: Optional[str] = None) -> str:
    found = first_match(EXPENSE_RULES, description)
    if found:
        return found
    if category and category != "other":
        return category
    return "other"


ANNUAL_MULTIPLIERS = {
    "weekly": 52,
    "monthly": 12,
    "quarterly": 4,
    "yearly": 1,
    "annual": 1,
}


def convert_to_annual(amount: float, frequency: Optional[str]) -> float:
    """Annual equivalent; unknown frequencies are treated as yearly."""
    multiplier = ANNUAL_MULTIPLIERS.get((frequency or "yearly").lower(), 1)
    return amount * multiplier


def convert_to_monthly(amount: float, frequency: Optional[str]) -> float:
    """Monthly equivalent, rounded to pence."""
    return round_half_up(convert_to_annual(amount, frequency) / 12, 2)


def calculate_tax_and_ni(annual_gross: float, tax_year: Optional[TaxYearConfig] = None) -> Dict[str, int]:
    """
    UK Income Tax and Class 1 National Insurance on a gross annual income.

    Income tax: basic, higher and additional rates apply marginally to the
    income above the personal allowance. NI: the main rate between the
    primary threshold and the upper earnings limit, the upper rate above it.

    Returns:
        Dict with income_tax, national_insurance, total_deductions (whole
        pounds) and effective_rate (whole percent, 0 for no income)
    """
    tax_year = tax_year or DEFAULT_CONFIG.tax_year
    gross = max(0.0, annual_gross or 0.0)

    taxable = max(0.0, gross - tax_year.personal_allowance)
    income_tax = banded_marginal_tax(
        taxable, [(lower, upper, rate) for _, lower, upper, rate in tax_year.income_tax_bands()]
    )

    national_insurance = banded_marginal_tax(gross, [
        (tax_year.ni_primary_threshold, tax_year.ni_upper_earnings_limit, tax_year.ni_main_rate),
        (tax_year.ni_upper_earnings_limit, None, tax_year.ni_upper_rate),
    ])

    total = income_tax + national_insurance
    return {
        "income_tax": round_half_up(income_tax),
        "national_insurance": round_half_up(national_insurance),
        "total_deductions": round_half_up(total),
        "effective_rate": round_half_up(total / gross * 100) if gross > 0 else 0,
    }


def income_tax_band(annual_gross: float, tax_year: Optional[TaxYearConfig] = None) -> Tuple[str, float]:
    """The (band, marginal income tax rate) a gross annual income tops out in."""
    tax_year = tax_year or DEFAULT_CONFIG.tax_year
    if annual_gross <= tax_year.personal_allowance:
        return "personal_allowance", 0.0
    if annual_gross <= tax_year.basic_rate_threshold:
        return "basic_rate", tax_year.basic_rate
    if annual_gross <= tax_year.higher_rate_threshold:
        return "higher_rate", tax_year.higher_rate
    return "additional_rate", tax_year.additional_rate


def income_tax_implications(
    amount: float,
    frequency: Optional[str],
    tax_year: Optional[TaxYearConfig] = None,
) -> Dict[str, Any]:
    """
    Take-home view of a single stated income.

    Returns:
        Dict with annual_gross, income_tax, national_insurance, annual_net,
        monthly_net, tax_band and marginal_rate
    """
    tax_year = tax_year or DEFAULT_CONFIG.tax_year
    gross = max(0.0, convert_to_annual(amount or 0.0, frequency))
    deductions = calculate_tax_and_ni(gross, tax_year)
    band, marginal_rate = income_tax_band(gross, tax_year)
    net = gross - deductions["total_deductions"]

    return {
        "annual_gross": round(gross, 2),
        "income_tax": deductions["income_tax"],
        "national_insurance": deductions["national_insurance"],
        "annual_net": round_half_up(net),
        "monthly_net": round_half_up(net / 12),
        "tax_band": band,
        "marginal_rate": marginal_rate,
    }


def _item_value(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


def _primary_amount(item: Any) -> float:
    amounts = _item_value(item, "amounts") or []
    return float(amounts[0]) if amounts else 0.0


def normalize_income(items: Optional[Iterable[Any]], tax_year: Optional[TaxYearConfig] = None) -> Dict[str, Any]:
    """
    Sum every income source to a gross annual figure, then take tax and NI
    off the total.

    Each item is an ``IncomeFact`` (or a dict of the same shape); only its
    first amount is used.
    """
    tax_year = tax_year or DEFAULT_CONFIG.tax_year

    annual_gross = 0.0
    sources = []
    for item in items or []:
        amount = _primary_amount(item)
        frequency = _item_value(item, "frequency") or "yearly"
        item_annual = convert_to_annual(amount, frequency)
        annual_gross += item_annual

        sources.append({
            "description": _item_value(item, "text", ""),
            "type": categorize_income_type(_item_value(item, "text", ""), _item_value(item, "category")),
            "frequency": frequency,
            "gross_amount": amount,
            "annual_gross": item_annual,
        })

    tax_breakdown = calculate_tax_and_ni(annual_gross, tax_year)
    annual_net = annual_gross - tax_breakdown["total_deductions"]

    return {
        "monthly_gross": round_half_up(annual_gross / 12),
        "monthly_net": round_half_up(annual_net / 12),
        "annual_gross": annual_gross,
        "annual_net": annual_net,
        "tax_breakdown": tax_breakdown,
        "sources": sources,
    }


def normalize_expenses(items: Optional[Iterable[Any]]) -> Dict[str, Any]:
    """Monthly totals overall and per category for a list of ``ExpenseFact``s."""
    categories: Dict[str, float] = {}
    breakdown = []
    monthly_total = 0.0

    for item in items or []:
        amount = _primary_amount(item)
        frequency = _item_value(item, "frequency") or "monthly"
        category = categorize_expense_type(_item_value(item, "text", ""), _item_value(item, "category"))
        monthly = convert_to_monthly(amount, frequency)

        monthly_total += monthly
        categories[category] = round(categories.get(category, 0.0) + monthly, 2)
        breakdown.append({
            "description": _item_value(item, "text", ""),
            "category": category,
            "frequency": frequency,
            "original_amount": amount,
            "monthly_amount": monthly,
        })

    return {
        "monthly_total": round_half_up(monthly_total),
        "annual_total": round_half_up(monthly_total * 12),
        "categories": categories,
        "breakdown": breakdown,
    }
