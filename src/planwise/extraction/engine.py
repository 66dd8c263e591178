"""
Fact Extraction Engine - turns a chat transcript into ``FinancialFacts``.

Each user message is bucketed by keyword, its amounts and timeframes are
parsed, and one fact per matching bucket is appended in message order. A
message listing several costs gives one expense fact per cost.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from planwise.config import DEFAULT_EXTRACTION_SETTINGS, ExtractionSettings, TaxYearConfig
from planwise.extraction.classifier import (
    assess_risk_level,
    categorize_asset,
    categorize_debt,
    categorize_goal,
    debt_priority,
    goal_priority,
    message_buckets,
)
from planwise.extraction.parsers import (
    calculate_urgency,
    detect_frequency,
    parse_amounts,
    parse_target_age,
    parse_timeframes,
    parse_timeline,
    split_clauses,
)
from planwise.models import (
    AssetFact,
    DebtFact,
    ExpenseFact,
    ExtractionMetadata,
    FinancialFacts,
    GoalFact,
    IncomeFact,
    RawMessage,
    RiskProfileFact,
    TaxImplications,
    Timeframe,
    TimelineFact,
)
from planwise.planning.normalizer import (
    categorize_expense_type,
    categorize_income_type,
    convert_to_annual,
    convert_to_monthly,
    income_tax_implications,
)
from planwise.tools.financial_calculator import round_half_up
from planwise.utils.logger import PlanningLogger


# Section weights for the general completion score
COMPLETION_WEIGHTS = {
    "income": 25,
    "expenses": 20,
    "goals": 30,
    "risk_tolerance": 15,
    "assets": 10,
}

# Which sections matter for a given goal
GOAL_REQUIREMENTS = {
    "retirement": {
        "critical": ["income", "risk_tolerance", "goals"],
        "important": ["expenses", "assets"],
        "optional": ["debts", "timeline"],
    },
    "house": {
        "critical": ["income", "expenses", "goals"],
        "important": ["assets", "debts"],
        "optional": ["risk_tolerance", "timeline"],
    },
    "emergency": {
        "critical": ["expenses", "goals"],
        "important": ["income", "assets"],
        "optional": ["debts", "risk_tolerance"],
    },
    "investment": {
        "critical": ["income", "risk_tolerance", "goals"],
        "important": ["assets", "expenses"],
        "optional": ["debts", "timeline"],
    },
    "debt": {
        "critical": ["debts", "income", "expenses"],
        "important": ["goals"],
        "optional": ["assets", "risk_tolerance"],
    },
    "education": {
        "critical": ["goals", "income"],
        "important": ["assets", "expenses"],
        "optional": ["debts", "risk_tolerance"],
    },
}

REQUIREMENT_WEIGHTS = {"critical": 40, "important": 30, "optional": 20}

# How much one fact matters to the goal in focus, by requirement level
RELEVANCE_SCORES = {"critical": 100, "important": 75, "optional": 25}
NEUTRAL_RELEVANCE = 50

# "£300 on food"
_SPENT_ON = re.compile(r"\bon\s+[a-z]", re.IGNORECASE)

# Three-year degree, tuition plus accommodation
UNIVERSITY_TUITION_PER_YEAR = 9250
UNIVERSITY_ACCOMMODATION_PER_YEAR = 8000
UNIVERSITY_YEARS = 3


def _coerce_messages(messages: Any) -> List[RawMessage]:
    if messages is None:
        return []
    if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
        raise TypeError(
            f"messages must be a sequence of messages, got {type(messages).__name__}"
        )

    coerced = []
    for index, message in enumerate(messages):
        if isinstance(message, RawMessage):
            coerced.append(message)
        elif isinstance(message, Mapping):
            coerced.append(RawMessage.model_validate(dict(message)))
        else:
            raise TypeError(
                f"message {index} must be a mapping or RawMessage, got {type(message).__name__}"
            )
    return coerced


def goal_relevance(section: str, goal_context: Optional[str]) -> int:
    """How much a fact in ``section`` matters to the goal in focus (25-100, 50 if none)."""
    requirements = GOAL_REQUIREMENTS.get(goal_context) if goal_context else None
    if not requirements:
        return NEUTRAL_RELEVANCE
    for level, fields in requirements.items():
        if section in fields:
            return RELEVANCE_SCORES[level]
    return NEUTRAL_RELEVANCE


def uk_goal_context(goal_types: Sequence[str], tax_year: TaxYearConfig) -> Dict[str, Any]:
    """UK allowances and schemes that bear on the given goal types."""
    context: Dict[str, Any] = {}
    if "retirement" in goal_types:
        context["state_pension_age"] = tax_year.state_pension_age
        context["pension_annual_allowance"] = tax_year.pension_annual_allowance
    if "house" in goal_types:
        context["first_time_buyer_schemes"] = ["Lifetime ISA", "Shared Ownership"]
        context["stamp_duty_threshold"] = tax_year.stamp_duty_bands[0].upper
        context["first_time_buyer_threshold"] = tax_year.first_time_buyer_bands[0].upper
    if "investment" in goal_types:
        context["isa_allowance"] = tax_year.isa_annual_limit
        context["capital_gains_allowance"] = tax_year.capital_gains_allowance
    if "emergency" in goal_types:
        context["recommended_months"] = "3-6 months expenses"
    return context


def _is_spending_clause(clause: str) -> bool:
    return (
        "expenses" in message_buckets(clause)
        or bool(_SPENT_ON.search(clause))
        or categorize_expense_type(clause) != "other"
    )


def _expense_items(text: str, amounts: List[float], legacy_k_scaling: bool) -> List[Tuple[str, List[float]]]:
    """
    Split a message listing several costs ("£800 on rent and £300 on food")
    into one ``(clause, amounts)`` pair per cost.

    Clauses without a spending cue ("I earn £3,000 a month") are dropped.
    A message with one amount, or with a clause holding more than one, stays
    whole.
    """
    if len(amounts) < 2:
        return [(text, amounts)]

    items: List[Tuple[str, List[float]]] = []
    for clause in split_clauses(text):
        clause_amounts = parse_amounts(clause, legacy_k_scaling=legacy_k_scaling)
        if not clause_amounts:
            continue
        if len(clause_amounts) > 1:
            return [(text, amounts)]
        if _is_spending_clause(clause) and (clause, clause_amounts) not in items:
            items.append((clause, clause_amounts))
    return items or [(text, amounts)]


def extract_financial_data(
    messages: Any,
    *,
    goal_context: Optional[str] = None,
    as_of: Optional[date] = None,
    settings: Optional[ExtractionSettings] = None,
    logger: Optional[PlanningLogger] = None,
) -> FinancialFacts:
    """
    Extract income, expenses, goals, assets, debts, timeline and risk profile
    from a conversation.

    Args:
        messages: Ordered ``RawMessage``s or ``{role, text, timestamp}`` dicts
            (``{type, content}`` is accepted too). ``None`` means no messages.
        goal_context: Goal the conversation is focused on ("retirement",
            "house", ...). It is added to every goal's types, makes those
            goals high priority and sets each fact's ``goal_relevance``.
        as_of: Date that "by 2030" deadlines count from; defaults to today
        settings: Parsing switches; defaults to ``DEFAULT_EXTRACTION_SETTINGS``
        logger: Optional trace logger

    Returns:
        FinancialFacts with every bucket in message order

    Raises:
        TypeError: ``messages`` is not a sequence, or holds something that is
            not a message
    """
    settings = settings or DEFAULT_EXTRACTION_SETTINGS
    raw_messages = _coerce_messages(messages)
    context = (goal_context or "").strip().lower() or None
    as_of_year = (as_of or date.today()).year

    if logger:
        logger.start_request("extract_financial_data", {"messages": len(raw_messages), "goal_context": context})

    sections: Dict[str, list] = {
        "income": [],
        "expenses": [],
        "goals": [],
        "assets": [],
        "debts": [],
        "timeline": [],
    }
    relevance = {section: goal_relevance(section, context) for section in (*sections, "risk_tolerance")}
    risk_profile: Optional[RiskProfileFact] = None
    user_messages = 0

    for index, message in enumerate(raw_messages):
        if message.role != "user" or not message.text:
            continue
        user_messages += 1

        text = message.text
        stamp = message.timestamp

        timeline = parse_timeline(text, as_of_year)
        if timeline:
            value, unit, _ = timeline
            sections["timeline"].append(TimelineFact(
                text=text,
                value=value,
                unit=unit,
                urgency=calculate_urgency(value, unit, settings.current_age),
                goal_relevance=relevance["timeline"],
                timestamp=stamp,
            ))

        buckets = message_buckets(text)
        if not buckets:
            continue

        amounts = parse_amounts(text, legacy_k_scaling=settings.legacy_k_scaling)

        if "income" in buckets:
            frequency = detect_frequency(text, "yearly")
            sections["income"].append(IncomeFact(
                text=text,
                amounts=amounts,
                frequency=frequency,
                category=categorize_income_type(text),
                uk_tax_implications=(
                    TaxImplications(**income_tax_implications(amounts[0], frequency, settings.tax_year))
                    if amounts else None
                ),
                goal_relevance=relevance["income"],
                timestamp=stamp,
            ))

        if "expenses" in buckets:
            message_frequency = detect_frequency(text, "monthly")
            for item_text, item_amounts in _expense_items(text, amounts, settings.legacy_k_scaling):
                sections["expenses"].append(ExpenseFact(
                    text=item_text,
                    amounts=item_amounts,
                    frequency=detect_frequency(item_text, message_frequency),
                    category=categorize_expense_type(item_text),
                    goal_relevance=relevance["expenses"],
                    timestamp=stamp,
                ))

        if "goals" in buckets:
            goal_types = categorize_goal(text)
            if context and context not in goal_types:
                goal_types = [context] + goal_types
            timeframes = parse_timeframes(text)
            target_age = parse_target_age(text)
            if target_age is not None:
                timeframes.append(Timeframe(value=target_age, unit="age"))
            sections["goals"].append(GoalFact(
                text=text,
                type=goal_types,
                amounts=amounts,
                timeframes=timeframes,
                priority=goal_priority(goal_types, context),
                uk_specific=uk_goal_context(goal_types, settings.tax_year),
                goal_relevance=relevance["goals"],
                timestamp=stamp,
            ))

        if "assets" in buckets and amounts:
            sections["assets"].append(AssetFact(
                text=text,
                amounts=amounts,
                type=categorize_asset(text),
                goal_relevance=relevance["assets"],
                timestamp=stamp,
            ))

        if "debts" in buckets and amounts:
            debt_type = categorize_debt(text)
            sections["debts"].append(DebtFact(
                text=text,
                amounts=amounts,
                type=debt_type,
                priority=debt_priority(debt_type),
                goal_relevance=relevance["debts"],
                timestamp=stamp,
            ))

        if "risk_tolerance" in buckets:
            # Later statements replace earlier ones
            risk_profile = RiskProfileFact(
                text=text,
                level=assess_risk_level(text),
                goal_relevance=relevance["risk_tolerance"],
                timestamp=stamp,
            )

        if logger:
            logger.log_step("classify", {"index": index, "buckets": buckets, "amounts": amounts})

    facts = FinancialFacts(
        **sections,
        risk_tolerance=risk_profile,
        goal_context=context,
        metadata=ExtractionMetadata(
            total_messages=len(raw_messages),
            user_messages=user_messages,
            goal_focused=context is not None,
        ),
    )

    if logger:
        counts = {key: len(value) for key, value in sections.items()}
        counts["risk_tolerance"] = risk_profile.level if risk_profile else None
        logger.end_request(counts)

    return facts


def _has_section(facts: FinancialFacts, key: str) -> bool:
    data = facts.section(key)
    if isinstance(data, list):
        return len(data) > 0
    return data is not None


def calculate_completion_score(facts: Optional[FinancialFacts], goal_context: Optional[str] = None) -> int:
    """
    How complete the fact-find is, 0-100.

    Without a goal context each populated section adds its fixed weight. With
    one (retirement, house, emergency, investment, debt, education), sections
    are weighted by how much that goal needs them and the score is the
    percentage of the achievable total.
    """
    if facts is None:
        return 0

    requirements = GOAL_REQUIREMENTS.get(goal_context) if goal_context else None
    if requirements:
        total = 0
        maximum = 0
        for level, fields in requirements.items():
            weight = REQUIREMENT_WEIGHTS[level]
            for field in fields:
                maximum += weight
                if _has_section(facts, field):
                    total += weight
        return min(int(round_half_up(total / maximum * 100)), 100)

    score = sum(weight for key, weight in COMPLETION_WEIGHTS.items() if _has_section(facts, key))
    return min(score, 100)


def _annual_income(facts: FinancialFacts) -> float:
    return sum(convert_to_annual(item.primary_amount, item.frequency) for item in facts.income)


def _monthly_expenses(facts: FinancialFacts) -> float:
    return sum(convert_to_monthly(item.primary_amount, item.frequency) for item in facts.expenses)


def _goal_insights(facts: FinancialFacts, goal_context: str) -> List[Dict[str, Any]]:
    insights = []

    if goal_context == "retirement" and facts.income:
        annual_income = _annual_income(facts)
        contribution = round(annual_income * 0.12, 2)
        insights.append({
            "type": "goal",
            "category": "retirement",
            "message": (
                f"Based on your income of £{annual_income:,.0f}, aim for total pension "
                f"contributions of £{contribution:,.0f} a year (12% rule)."
            ),
            "value": contribution,
        })

    elif goal_context == "house" and facts.income:
        max_mortgage = _annual_income(facts) * 4.5
        deposit = max_mortgage * 0.1
        insights.append({
            "type": "goal",
            "category": "house",
            "message": (
                f"You could potentially borrow up to £{max_mortgage:,.0f}. "
                f"You'd need a deposit of at least £{deposit:,.0f} (10%)."
            ),
            "value": max_mortgage,
        })

    elif goal_context == "emergency" and facts.expenses:
        monthly = _monthly_expenses(facts)
        insights.append({
            "type": "goal",
            "category": "emergency",
            "message": (
                f"Keep between £{monthly * 3:,.0f} (3 months) and £{monthly * 6:,.0f} "
                "(6 months) of expenses in easy-access savings."
            ),
            "value": round(monthly * 6, 2),
        })

    elif goal_context == "investment" and facts.income:
        insights.append({
            "type": "goal",
            "category": "investment",
            "message": (
                "You can invest up to £20,000 a year in a Stocks & Shares ISA "
                "with no tax on gains or dividends."
            ),
            "value": 20000,
        })

    elif goal_context == "debt" and facts.debts:
        total_debt = sum(debt.primary_amount for debt in facts.debts)
        insights.append({
            "type": "goal",
            "category": "debt",
            "message": (
                f"You have £{total_debt:,.0f} in total debt. Clear high-interest debt "
                "(credit cards, personal loans) first."
            ),
            "value": total_debt,
        })

    elif goal_context == "education":
        total_cost = (UNIVERSITY_TUITION_PER_YEAR + UNIVERSITY_ACCOMMODATION_PER_YEAR) * UNIVERSITY_YEARS
        insights.append({
            "type": "goal",
            "category": "education",
            "message": (
                f"A 3-year UK degree costs roughly £{total_cost:,} including accommodation. "
                "A Junior ISA takes up to £9,000 a year."
            ),
            "value": total_cost,
        })

    return insights


def generate_insights(facts: Optional[FinancialFacts], goal_context: Optional[str] = None) -> List[Dict[str, Any]]:
    """Summary insights over extracted facts, plus goal-focused ones when a goal is given."""
    if facts is None:
        return []

    insights: List[Dict[str, Any]] = []

    if facts.income:
        all_amounts = [amount for item in facts.income for amount in item.amounts]
        average = float(np.mean(all_amounts)) if all_amounts else 0.0
        insights.append({
            "type": "summary",
            "category": "income",
            "message": f"Your average stated income amount is £{average:,.0f}.",
            "value": average,
        })

    if facts.expenses:
        monthly = round(_monthly_expenses(facts), 2)
        insights.append({
            "type": "summary",
            "category": "expenses",
            "message": f"Your total monthly expenses are approximately £{monthly:,.0f}.",
            "value": monthly,
        })

    if facts.income and facts.expenses:
        surplus = round(_annual_income(facts) / 12 - _monthly_expenses(facts), 2)
        if surplus > 0:
            insights.append({
                "type": "positive",
                "category": "surplus",
                "message": f"You have a monthly surplus of about £{surplus:,.0f} before tax.",
                "value": surplus,
            })
        elif surplus < 0:
            insights.append({
                "type": "alert",
                "category": "deficit",
                "message": f"Your expenses exceed your income by £{abs(surplus):,.0f} a month.",
                "value": surplus,
            })

    if facts.goals:
        goal_types: List[str] = []
        for goal in facts.goals:
            for goal_type in goal.type:
                if goal_type not in goal_types:
                    goal_types.append(goal_type)
        insights.append({
            "type": "summary",
            "category": "goals",
            "message": f"You have {len(goal_types)} main financial goals: {', '.join(goal_types)}.",
            "value": goal_types,
        })

    if facts.risk_tolerance and facts.risk_tolerance.level != "unknown":
        insights.append({
            "type": "summary",
            "category": "risk",
            "message": f"Your risk tolerance is {facts.risk_tolerance.level}.",
            "value": facts.risk_tolerance.level,
        })

    if goal_context:
        insights.extend(_goal_insights(facts, goal_context))

    return insights
