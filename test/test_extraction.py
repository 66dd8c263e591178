"""
Tests for the fact extraction engine, completion score and summary insights
"""

from datetime import date

import pytest

from planwise.config import ExtractionSettings
from planwise.extraction.engine import calculate_completion_score, extract_financial_data, generate_insights
from planwise.models import FinancialFacts, RawMessage, Timeframe
from planwise.planning.normalizer import normalize_expenses

from scenarios import ConversationScenarios


def user(text):
    return ConversationScenarios.user(text)


@pytest.mark.parametrize(
    "scenario", ConversationScenarios.get_scenarios(), ids=lambda s: s["id"]
)
def test_scenario_buckets(scenario):
    facts = extract_financial_data(scenario["messages"])
    expected = scenario["expected"]

    assert len(facts.income) == expected["income"]
    assert len(facts.expenses) == expected["expenses"]
    assert len(facts.goals) == expected["goals"]
    assert len(facts.assets) == expected["assets"]
    assert len(facts.debts) == expected["debts"]
    assert len(facts.timeline) == expected["timeline"]

    level = facts.risk_tolerance.level if facts.risk_tolerance else None
    assert level == expected["risk_level"]

    goal_types = [t for goal in facts.goals for t in goal.type]
    assert goal_types == expected["goal_types"]

    assert calculate_completion_score(facts) == expected["completion_score"]


def test_income_statement():
    facts = extract_financial_data([user("I earn £55,000 per year")])

    assert len(facts.income) == 1
    income = facts.income[0]
    assert income.amounts == [55000]
    assert income.frequency == "yearly"
    assert income.text == "I earn £55,000 per year"


def test_retirement_goal_with_age():
    facts = extract_financial_data([user("I want to retire at 65")])

    goal = facts.goals[0]
    assert "retirement" in goal.type
    assert goal.timeframes == [Timeframe(value=65, unit="age")]
    assert goal.priority == "medium"


def test_retirement_goal_without_timeframe():
    facts = extract_financial_data([user("I want to retire comfortably")])
    assert facts.goals[0].type == ["retirement"]
    assert facts.goals[0].timeframes == []


def test_risk_last_statement_wins():
    facts = extract_financial_data([
        user("I'm conservative with money"),
        user("On reflection I'm aggressive and fine with volatile markets"),
    ])
    assert facts.risk_tolerance.level == "high"
    assert facts.risk_tolerance.text.startswith("On reflection")


def test_only_user_messages_are_scanned():
    facts = extract_financial_data([
        {"role": "assistant", "text": "Most people earn £30,000"},
        {"role": "user", "text": "I earn £40,000 per year"},
    ])
    assert [f.amounts for f in facts.income] == [[40000]]
    assert facts.metadata.total_messages == 2
    assert facts.metadata.user_messages == 1


def test_chat_layer_message_shape():
    facts = extract_financial_data([{"type": "user", "content": "I earn £40,000 per year"}])
    assert facts.income[0].amounts == [40000]


def test_accepts_raw_message_models():
    facts = extract_financial_data([RawMessage(role="user", text="I spend £1,200 a month")])
    assert facts.expenses[0].amounts == [1200]
    assert facts.expenses[0].frequency == "monthly"


def test_message_in_several_buckets():
    facts = extract_financial_data([user("I earn £3,000 a month and spend £2,000 on rent")])
    assert len(facts.income) == 1
    assert facts.income[0].amounts == [3000, 2000]

    # only the spending clause becomes an expense
    assert len(facts.expenses) == 1
    expense = facts.expenses[0]
    assert expense.text == "spend £2,000 on rent"
    assert expense.amounts == [2000]
    assert expense.category == "housing"
    assert expense.frequency == "monthly"


def test_expense_list_is_split_per_item():
    facts = extract_financial_data([user("I spend £800 on rent and £300 on food every month")])

    assert [(e.amounts, e.category, e.frequency) for e in facts.expenses] == [
        ([800], "housing", "monthly"),
        ([300], "food", "monthly"),
    ]
    assert normalize_expenses(facts.expenses)["monthly_total"] == 1100


def test_expense_items_keep_their_own_frequency():
    facts = extract_financial_data([user("Rent is £1,200 a month, plus £60 a week on groceries")])

    assert [(e.amounts, e.frequency) for e in facts.expenses] == [([1200], "monthly"), ([60], "weekly")]
    assert normalize_expenses(facts.expenses)["monthly_total"] == 1460


def test_single_amount_expense_stays_whole():
    facts = extract_financial_data([user("My bills come to £2,000 a month")])
    assert len(facts.expenses) == 1
    assert facts.expenses[0].text == "My bills come to £2,000 a month"


def test_assets_and_debts_need_amounts():
    facts = extract_financial_data([
        user("I have some savings"),
        user("I have a loan"),
        user("I have £8,000 in savings"),
        user("I owe £2,500 on my credit card"),
    ])
    assert [a.amounts for a in facts.assets] == [[8000]]
    assert facts.debts[0].type == "credit_card"
    assert facts.debts[0].priority == "high"


def test_legacy_k_scaling_setting():
    messages = [user("I earn 50k and spend £2,000 a month")]

    scoped = extract_financial_data(messages)
    legacy = extract_financial_data(messages, settings=ExtractionSettings(legacy_k_scaling=True))

    assert scoped.income[0].amounts == [2000, 50000]
    assert legacy.income[0].amounts == [2000000, 50000]


def test_extraction_is_idempotent():
    messages = ConversationScenarios.scenario_1_salaried_saver()["messages"]
    assert extract_financial_data(messages) == extract_financial_data(messages)


class TestMalformedInput:

    def test_none_gives_empty_facts(self):
        facts = extract_financial_data(None)
        assert facts == FinancialFacts()
        assert calculate_completion_score(facts) == 0

    def test_empty_list(self):
        assert extract_financial_data([]) == FinancialFacts()

    @pytest.mark.parametrize("bad", ["I earn £50k", 42, {"role": "user", "text": "hi"}])
    def test_non_sequence_rejected(self, bad):
        with pytest.raises(TypeError):
            extract_financial_data(bad)

    def test_bad_element_rejected(self):
        with pytest.raises(TypeError):
            extract_financial_data([user("I earn £50k"), 7])

    def test_empty_text_skipped(self):
        facts = extract_financial_data([{"role": "user", "text": None}, {"role": "user", "text": ""}])
        assert facts.income == []


class TestCompletionScore:

    def test_empty(self):
        assert calculate_completion_score(FinancialFacts()) == 0
        assert calculate_completion_score(None) == 0

    def test_all_sections(self):
        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I spend £2,000 a month"),
            user("I want to buy a house"),
            user("I prefer safe investments"),
        ])
        # no amount, so "safe investments" adds no asset
        assert calculate_completion_score(facts) == 90

        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I spend £2,000 a month"),
            user("I want to buy a house"),
            user("I prefer safe options"),
            user("I have £10,000 in savings"),
        ])
        assert calculate_completion_score(facts) == 100

    def test_goal_context_weighting(self):
        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I want to retire at 60"),
            user("I'm a cautious, low risk person"),
        ])
        # critical 3/3 (120) of a possible 220
        assert calculate_completion_score(facts, "retirement") == 55

    def test_timeline_counts_for_goal_context(self):
        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I want to retire in 25 years"),
            user("I'm a cautious, low risk person"),
        ])
        # critical 120 plus optional timeline 20, of 220
        assert calculate_completion_score(facts, "retirement") == 64
        # timeline carries no weight without a goal
        assert calculate_completion_score(facts) == 70

    def test_unknown_goal_context_uses_general_weights(self):
        facts = extract_financial_data([user("I earn £50,000 per year")])
        assert calculate_completion_score(facts, "lottery") == 25


class TestInsights:

    def test_summary_insights(self):
        facts = extract_financial_data(ConversationScenarios.scenario_1_salaried_saver()["messages"])
        insights = {i["category"]: i for i in generate_insights(facts)}

        assert insights["income"]["value"] == 55000
        assert insights["expenses"]["value"] == 2000
        assert insights["goals"]["value"] == ["retirement"]
        assert insights["risk"]["value"] == "medium"
        assert insights["surplus"]["type"] == "positive"

    def test_income_average_is_flattened(self):
        facts = extract_financial_data([
            user("I earn £30,000 per year"),
            user("My partner earns £20,000 per year and £10,000 from rental income"),
        ])
        insight = next(i for i in generate_insights(facts) if i["category"] == "income")
        assert insight["value"] == pytest.approx(20000)

    def test_unknown_risk_skipped(self):
        facts = extract_financial_data([user("what is risk anyway")])
        assert not any(i["category"] == "risk" for i in generate_insights(facts))

    def test_goal_types_deduplicated(self):
        facts = extract_financial_data([
            user("I want to retire early"),
            user("My goal is to retire and buy a house"),
        ])
        insight = next(i for i in generate_insights(facts) if i["category"] == "goals")
        assert insight["value"] == ["retirement", "house"]

    def test_deficit(self):
        facts = extract_financial_data([
            user("I earn £1,000 a month"),
            user("I spend £1,500 a month"),
        ])
        insight = next(i for i in generate_insights(facts) if i["category"] == "deficit")
        assert insight["value"] == -500

    def test_goal_context_insight(self):
        facts = extract_financial_data([user("I earn £50,000 per year")])
        insight = next(i for i in generate_insights(facts, "retirement") if i["type"] == "goal")
        assert insight["value"] == 6000

    def test_empty(self):
        assert generate_insights(FinancialFacts()) == []
        assert generate_insights(None) == []


class TestGoalContext:

    def test_relevance_follows_goal_requirements(self):
        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I spend £2,000 a month"),
            user("I owe £3,000 on a loan"),
            user("I'm a cautious, low risk person"),
        ], goal_context="retirement")

        assert facts.income[0].goal_relevance == 100
        assert facts.expenses[0].goal_relevance == 75
        assert facts.debts[0].goal_relevance == 25
        assert facts.risk_tolerance.goal_relevance == 100
        assert facts.goal_context == "retirement"
        assert facts.metadata.goal_focused is True

    def test_neutral_relevance_without_context(self):
        facts = extract_financial_data([user("I earn £50,000 per year")])
        assert facts.income[0].goal_relevance == 50
        assert facts.goal_context is None
        assert facts.metadata.goal_focused is False

    def test_unknown_context_is_neutral(self):
        facts = extract_financial_data([user("I earn £50,000 per year")], goal_context="lottery")
        assert facts.income[0].goal_relevance == 50

    def test_context_leads_goal_types(self):
        facts = extract_financial_data([user("I want to buy a car")], goal_context="house")
        goal = facts.goals[0]
        assert goal.type == ["house", "car"]
        assert goal.priority == "high"
        assert goal.uk_specific["first_time_buyer_threshold"] == 425000

    def test_context_already_present_is_not_repeated(self):
        facts = extract_financial_data([user("I want to retire at 60")], goal_context="Retirement")
        goal = facts.goals[0]
        assert goal.type == ["retirement"]
        assert goal.priority == "high"
        assert goal.uk_specific == {"state_pension_age": 67, "pension_annual_allowance": 60000}

    def test_investment_goal_allowances(self):
        facts = extract_financial_data([user("I want to invest in shares")])
        assert facts.goals[0].uk_specific == {"isa_allowance": 20000, "capital_gains_allowance": 3000}

    def test_income_tax_implications(self):
        facts = extract_financial_data([user("I earn £55,000 per year")])
        tax = facts.income[0].uk_tax_implications

        assert tax.income_tax == 9432
        assert tax.national_insurance == 4619
        assert tax.annual_net == 40949
        assert tax.monthly_net == 3412
        assert tax.tax_band == "higher_rate"
        assert tax.marginal_rate == 0.40

    def test_income_without_amount_has_no_tax_figures(self):
        facts = extract_financial_data([user("I earn a decent salary")])
        assert facts.income[0].uk_tax_implications is None

    def test_goal_focused_retirement_score(self):
        facts = extract_financial_data([
            user("I earn £50,000 per year"),
            user("I want to retire at 60"),
            user("I'm a cautious, low risk person"),
        ], goal_context="retirement")

        assert facts.timeline == []
        assert calculate_completion_score(facts, "retirement") == 55


class TestTimeline:

    def test_duration(self):
        facts = extract_financial_data([user("I want to buy a house in 4 years")])
        timeline = facts.timeline[0]
        assert (timeline.value, timeline.unit, timeline.urgency) == (4, "years", "medium")
        assert timeline.text == "I want to buy a house in 4 years"

    def test_calendar_year_counts_from_as_of(self):
        facts = extract_financial_data(
            [user("I'd like the deposit ready by 2028")], as_of=date(2026, 10, 1)
        )
        assert (facts.timeline[0].value, facts.timeline[0].unit) == (2, "years")
        assert facts.timeline[0].urgency == "high"

    def test_target_age_uses_current_age(self):
        facts = extract_financial_data(
            [user("I'd like to stop working when I'm 60")],
            settings=ExtractionSettings(current_age=57),
        )
        assert (facts.timeline[0].value, facts.timeline[0].unit) == (60, "age")
        assert facts.timeline[0].urgency == "medium"

    def test_timeline_without_other_facts(self):
        facts = extract_financial_data([user("within 3 months ideally")])
        assert facts.timeline[0].urgency == "urgent"
        assert facts.income == facts.goals == []

    def test_relevance_in_goal_context(self):
        facts = extract_financial_data([user("in 10 years")], goal_context="house")
        assert facts.timeline[0].goal_relevance == 25
