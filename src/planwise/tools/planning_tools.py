"""
Planning Tools for planwise - fact extraction, UK tax and plan generation exposed to agents
"""

import json
from typing import Any, Dict

from langchain_core.tools import tool
from pydantic import ValidationError

from planwise.config import get_tax_year
from planwise.extraction.engine import calculate_completion_score, extract_financial_data
from planwise.planning.engine import generate_financial_plan
from planwise.planning.normalizer import calculate_tax_and_ni


@tool
def calculate_uk_tax(annual_gross_income: float, tax_year: str = "2025/26") -> Dict[str, Any]:
    """
    Calculate UK Income Tax and National Insurance on a gross annual income.

    Args:
        annual_gross_income: Gross income per year in pounds
        tax_year: UK tax year label, e.g. "2025/26"

    Returns:
        Dict with income tax, NI, total deductions, net income and effective rate
    """
    if annual_gross_income < 0:
        return {"error": "annual_gross_income must not be negative"}

    rules = get_tax_year(tax_year)
    breakdown = calculate_tax_and_ni(annual_gross_income, rules)
    net = annual_gross_income - breakdown["total_deductions"]

    return {
        "calculation_type": "UK Income Tax & National Insurance",
        "tax_year": rules.tax_year,
        "annual_gross": round(annual_gross_income, 2),
        **breakdown,
        "effective_rate": f"{breakdown['effective_rate']}%",
        "annual_net": round(net, 2),
        "monthly_net": round(net / 12, 2)
    }


@tool
def extract_financial_facts(messages_json: str, goal_context: str = "") -> Dict[str, Any]:
    """
    Extract income, expenses, goals, assets, debts, timeline and risk tolerance from a conversation.

    Args:
        messages_json: JSON list of messages, each {"role": "user"|"assistant", "text": "..."}
        goal_context: Optional goal the conversation is about (retirement, house,
            emergency, investment, debt, education); weights facts and the score towards it

    Returns:
        Dict with the extracted facts and a 0-100 completion score
    """
    try:
        messages = json.loads(messages_json)
        facts = extract_financial_data(messages, goal_context=goal_context or None)
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        return {"error": f"Could not read conversation: {str(e)}"}

    return {
        "facts": facts.model_dump(mode="json"),
        "completion_score": calculate_completion_score(facts, facts.goal_context)
    }


@tool
def build_financial_plan(goal_type: str, facts_json: str) -> Dict[str, Any]:
    """
    Build a UK financial plan for a goal from previously extracted facts.

    Args:
        goal_type: One of retirement, house, investment, protection, comprehensive, basic
        facts_json: JSON object as returned in "facts" by extract_financial_facts

    Returns:
        Dict with success flag and either the plan or the reasons it could not be built
    """
    try:
        facts = json.loads(facts_json)
        return generate_financial_plan(goal_type, facts)
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        return {"error": f"Could not read financial facts: {str(e)}"}


# Export all tools
PLANNING_TOOLS = [
    calculate_uk_tax,
    extract_financial_facts,
    build_financial_plan
]
