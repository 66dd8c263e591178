"""
Tests for the classification rule tables
"""

import pytest

from planwise.extraction.classifier import (
    assess_risk_level,
    categorize_asset,
    categorize_debt,
    categorize_goal,
    debt_priority,
    goal_priority,
    message_buckets,
)
from planwise.planning.normalizer import categorize_expense_type, categorize_income_type
from planwise.utils.rules import all_matches, compile_rules, first_match


def test_rule_engine_first_and_all():
    rules = compile_rules((r"cat", "animal"), (r"car", "vehicle"), (r"ca", "prefix"))
    assert first_match(rules, "a red car") == "vehicle"
    assert first_match(rules, "nothing here", "none") == "none"
    assert all_matches(rules, "cat in a car") == ["animal", "vehicle", "prefix"]


class TestMessageBuckets:

    def test_income(self):
        assert message_buckets("I earn £55,000 per year") == ["income"]

    def test_one_message_many_buckets(self):
        buckets = message_buckets("I earn £4k a month and spend most of it on rent")
        assert "income" in buckets
        assert "expenses" in buckets

    def test_assets_and_debts(self):
        assert message_buckets("My pension pot is £30,000") == ["assets"]
        assert message_buckets("I owe £2,000 on a loan") == ["debts"]

    def test_nothing(self):
        assert message_buckets("Hello there") == []
        assert message_buckets(None) == []


class TestGoals:

    def test_retirement(self):
        assert categorize_goal("I want to retire at 65") == ["retirement"]

    def test_multiple_categories(self):
        types = categorize_goal("Buy a house and pay off my debt")
        assert types == ["house", "debt"]

    def test_empty(self):
        assert categorize_goal("I want to feel better") == []

    @pytest.mark.parametrize("types, priority", [
        (["emergency"], "high"),
        (["house", "debt"], "high"),
        (["retirement"], "medium"),
        (["education"], "medium"),
        (["travel"], "low"),
        ([], "low"),
    ])
    def test_priority(self, types, priority):
        assert goal_priority(types) == priority

    def test_goal_in_focus_is_high_priority(self):
        assert goal_priority(["travel"], "travel") == "high"
        assert goal_priority(["retirement"], "house") == "medium"


class TestRisk:

    @pytest.mark.parametrize("text, level", [
        ("I prefer safe options", "low"),
        ("I'm a conservative investor", "low"),
        ("I'm fine with volatile markets", "high"),
        ("I like aggressive growth", "high"),
        ("a balanced approach", "medium"),
        ("what is risk anyway", "unknown"),
    ])
    def test_levels(self, text, level):
        assert assess_risk_level(text) == level

    def test_low_wins_over_high(self):
        assert assess_risk_level("safe but also aggressive") == "low"

    def test_non_string(self):
        assert assess_risk_level(None) == "unknown"


class TestIncomeAndExpenseTypes:

    @pytest.mark.parametrize("text, income_type", [
        ("my salary is £40k", "employment"),
        ("I'm self-employed and make £30k", "self-employment"),
        ("my pension pays £800 a month", "pension"),
        ("rental income of £600", "rental"),
        ("dividends of £2k", "investment"),
        ("child benefit", "benefits"),
        ("I earn £50,000", "other"),
    ])
    def test_income(self, text, income_type):
        assert categorize_income_type(text) == income_type

    @pytest.mark.parametrize("text, category", [
        ("rent is £900", "housing"),
        ("£300 on groceries", "food"),
        ("petrol costs £150", "transport"),
        ("electric bill", "utilities"),
        ("car insurance", "transport"),
        ("home insurance", "insurance"),
        ("netflix subscription", "entertainment"),
        ("dental check-ups", "healthcare"),
        ("misc spending", "other"),
    ])
    def test_expense(self, text, category):
        assert categorize_expense_type(text) == category

    def test_fallback_category(self):
        assert categorize_expense_type("misc", "childcare") == "childcare"


class TestAssetsAndDebts:

    def test_assets(self):
        assert categorize_asset("my pension pot is £40k") == "pension"
        assert categorize_asset("£5k in a cash ISA") == "isa"
        assert categorize_asset("£15,000 in savings towards a deposit") == "house_savings"
        assert categorize_asset("I have £3,000 saved") == "savings"

    def test_debts(self):
        assert categorize_debt("£4,000 on my credit card") == "credit_card"
        assert categorize_debt("£20k student loan") == "student_loan"
        assert categorize_debt("car loan of £8k") == "loan"
        assert categorize_debt("I owe my brother £500") == "general"

    def test_debt_priority(self):
        assert debt_priority("credit_card") == "high"
        assert debt_priority("loan") == "medium"
        assert debt_priority("mortgage") == "low"
        assert debt_priority("general") == "medium"
