"""
Tests for frequency conversion, UK tax & NI, and income/expense normalisation
"""

import pytest

from planwise.models import ExpenseFact, IncomeFact
from planwise.planning.normalizer import (
    calculate_tax_and_ni,
    convert_to_annual,
    convert_to_monthly,
    income_tax_band,
    income_tax_implications,
    normalize_expenses,
    normalize_income,
)


class TestFrequencyConversion:

    @pytest.mark.parametrize("frequency, annual", [
        ("weekly", 5200),
        ("monthly", 1200),
        ("quarterly", 400),
        ("yearly", 100),
        ("annual", 100),
        ("fortnightly", 100),
        (None, 100),
    ])
    def test_to_annual(self, frequency, annual):
        assert convert_to_annual(100, frequency) == annual

    def test_to_monthly(self):
        assert convert_to_monthly(1200, "yearly") == 100
        assert convert_to_monthly(100, "weekly") == pytest.approx(433.33)
        assert convert_to_monthly(300, "quarterly") == 100

    @pytest.mark.parametrize("frequency", ["weekly", "monthly", "quarterly", "yearly"])
    def test_monthly_times_twelve_is_annual(self, frequency):
        assert convert_to_monthly(250, frequency) * 12 == pytest.approx(
            convert_to_annual(250, frequency), abs=0.06
        )


class TestTaxAndNI:

    def test_no_income(self):
        assert calculate_tax_and_ni(0) == {
            "income_tax": 0,
            "national_insurance": 0,
            "total_deductions": 0,
            "effective_rate": 0,
        }

    def test_personal_allowance(self):
        result = calculate_tax_and_ni(12570)
        assert result["income_tax"] == 0
        assert result["national_insurance"] == 0

    def test_top_of_basic_rate(self):
        result = calculate_tax_and_ni(50270)
        assert result["income_tax"] == 7540
        assert result["national_insurance"] == 4524
        assert result["total_deductions"] == 12064
        assert result["effective_rate"] == 24

    def test_higher_rate_taxpayer(self):
        result = calculate_tax_and_ni(55000)
        assert result["income_tax"] == 9432
        assert result["national_insurance"] == 4619
        assert result["total_deductions"] == 14051
        assert result["effective_rate"] == 26

    def test_higher_rate_six_figures(self):
        result = calculate_tax_and_ni(100000)
        assert result["income_tax"] == 27432
        assert result["national_insurance"] == 5519
        assert result["total_deductions"] == 32951
        assert result["effective_rate"] == 33

    def test_additional_rate(self):
        result = calculate_tax_and_ni(150000)
        assert result["income_tax"] == 48675
        assert result["national_insurance"] == 6519
        assert result["total_deductions"] == 55194

    def test_negative_income_treated_as_zero(self):
        assert calculate_tax_and_ni(-1000)["total_deductions"] == 0

    def test_deductions_rise_with_income(self):
        incomes = range(0, 200001, 2500)
        totals = [calculate_tax_and_ni(gross)["total_deductions"] for gross in incomes]
        assert totals == sorted(totals)

    def test_deductions_never_exceed_income(self):
        for gross in (1000, 20000, 80000, 200000, 1000000):
            assert calculate_tax_and_ni(gross)["total_deductions"] < gross


class TestIncomeTaxImplications:

    @pytest.mark.parametrize("gross, band, rate", [
        (12570, "personal_allowance", 0.0),
        (12571, "basic_rate", 0.20),
        (50270, "basic_rate", 0.20),
        (50271, "higher_rate", 0.40),
        (125140, "higher_rate", 0.40),
        (125141, "additional_rate", 0.45),
    ])
    def test_band_edges(self, gross, band, rate):
        assert income_tax_band(gross) == (band, rate)

    def test_monthly_salary(self):
        result = income_tax_implications(3000, "monthly")

        assert result["annual_gross"] == 36000
        assert result["income_tax"] == 4686
        assert result["national_insurance"] == 2812
        assert result["annual_net"] == 28502
        assert result["monthly_net"] == 2375
        assert result["tax_band"] == "basic_rate"

    def test_agrees_with_normalize_income(self):
        single = income_tax_implications(55000, "yearly")
        combined = normalize_income([IncomeFact(text="I earn £55,000 per year", amounts=[55000])])
        assert single["monthly_net"] == combined["monthly_net"]


class TestNormalizeIncome:

    def test_single_salary(self):
        result = normalize_income([IncomeFact(text="I earn £55,000 per year", amounts=[55000])])

        assert result["annual_gross"] == 55000
        assert result["annual_net"] == 40949
        assert result["monthly_gross"] == 4583
        assert result["monthly_net"] == 3412
        assert result["tax_breakdown"]["income_tax"] == 9432

        source = result["sources"][0]
        assert source["type"] == "other"
        assert source["frequency"] == "yearly"
        assert source["gross_amount"] == 55000

    def test_sources_are_summed_before_tax(self):
        result = normalize_income([
            IncomeFact(text="My salary is £3,000 a month", amounts=[3000], frequency="monthly"),
            {"text": "rental income of £400 a week", "amounts": [400], "frequency": "weekly"},
        ])

        assert result["annual_gross"] == 36000 + 20800
        assert result["tax_breakdown"] == calculate_tax_and_ni(56800)
        assert [s["type"] for s in result["sources"]] == ["employment", "rental"]

    def test_only_first_amount_used(self):
        result = normalize_income([IncomeFact(text="I earn £40,000 or £45,000", amounts=[40000, 45000])])
        assert result["annual_gross"] == 40000

    def test_empty(self):
        result = normalize_income([])
        assert result["annual_gross"] == 0
        assert result["monthly_net"] == 0
        assert result["sources"] == []
        assert normalize_income(None)["annual_net"] == 0


class TestNormalizeExpenses:

    def test_totals_and_categories(self):
        result = normalize_expenses([
            ExpenseFact(text="Rent is £1,200 a month", amounts=[1200]),
            ExpenseFact(text="Groceries £100 a week", amounts=[100], frequency="weekly"),
            ExpenseFact(text="Car insurance £600 a year", amounts=[600], frequency="yearly"),
        ])

        assert result["monthly_total"] == 1683
        assert result["annual_total"] == 20200
        assert result["categories"] == {"housing": 1200, "food": 433.33, "transport": 50}
        assert [b["monthly_amount"] for b in result["breakdown"]] == [1200, 433.33, 50]

    def test_category_fallback(self):
        result = normalize_expenses([
            {"text": "nursery", "amounts": [800], "frequency": "monthly", "category": "childcare"},
        ])
        assert result["categories"] == {"childcare": 800}

    def test_empty(self):
        result = normalize_expenses([])
        assert result["monthly_total"] == 0
        assert result["annual_total"] == 0
        assert result["categories"] == {}
