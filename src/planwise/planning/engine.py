"""
Planning Engine - validates facts, dispatches to a goal planner and assembles the plan.
"""

import calendar
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional

from planwise.config import DEFAULT_CONFIG, PlanningConfig
from planwise.models import FinancialFacts, GoalType
from planwise.planning.health_score import calculate_financial_health
from planwise.planning.insights import generate_action_items, generate_key_insights
from planwise.planning.normalizer import normalize_expenses, normalize_income
from planwise.planning.planners import PLANNERS
from planwise.utils.logger import PlanningLogger


ENGINE_VERSION = "1.0.0"


def _coerce_facts(facts: Any) -> FinancialFacts:
    if isinstance(facts, FinancialFacts):
        return facts
    if isinstance(facts, Mapping):
        return FinancialFacts.model_validate(dict(facts))
    raise TypeError(f"facts must be FinancialFacts or a mapping, got {type(facts).__name__}")


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def validate_financial_data(facts: Any) -> Dict[str, Any]:
    """
    Check there is enough to plan with: at least one income and one expense.

    Raises:
        TypeError: ``facts`` is neither FinancialFacts nor a mapping
    """
    facts = _coerce_facts(facts)
    errors = []

    if not facts.income:
        errors.append("Income information is required for financial planning")
    if not facts.expenses:
        errors.append("Expense information is required for financial planning")

    return {"is_valid": not errors, "errors": errors}


def generate_financial_plan(
    goal_type: Any,
    facts: Any,
    *,
    config: Optional[PlanningConfig] = None,
    logger: Optional[PlanningLogger] = None,
    as_of: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build a complete plan for one goal.

    Args:
        goal_type: A ``GoalType`` or its name (aliases such as "saving" and
            "general" are accepted)
        facts: ``FinancialFacts`` or a mapping of the same shape
        config: Tax year and planning assumptions; ``DEFAULT_CONFIG`` if omitted
        logger: Optional trace logger
        as_of: Generation time; review dates are counted from it

    Returns:
        ``{"success": True, "plan": {...}}`` or
        ``{"success": False, "errors": [...], "plan": None}``
    """
    config = config or DEFAULT_CONFIG
    facts = _coerce_facts(facts)
    as_of = as_of or datetime.now()

    if logger:
        logger.start_request("generate_financial_plan", {"goal_type": str(goal_type)})

    validation = validate_financial_data(facts)
    errors = list(validation["errors"])

    goal = GoalType.parse(goal_type)
    if goal is None:
        errors.append(
            f"Unsupported goal type: {goal_type!r}. Choose one of: "
            + ", ".join(member.value for member in GoalType)
        )

    if errors:
        if logger:
            logger.log_decision("reject", "; ".join(errors))
            logger.end_request({"success": False})
        return {"success": False, "errors": errors, "plan": None}

    normalized_income = normalize_income(facts.income, config.tax_year)
    normalized_expenses = normalize_expenses(facts.expenses)
    financial_health = calculate_financial_health(normalized_income, normalized_expenses, facts)

    if logger:
        logger.log_decision(goal.value, f"goal type {goal_type!r} dispatched to {PLANNERS[goal].__name__}")

    goal_plan = PLANNERS[goal](facts, config)
    insights = generate_key_insights(goal, normalized_income, normalized_expenses, goal_plan)
    action_items = generate_action_items(goal, goal_plan, financial_health, config)

    plan = {
        "goal_type": goal.value,
        "generated_at": as_of.isoformat(),
        "tax_year": config.tax_year.tax_year,
        "normalized_income": normalized_income,
        "normalized_expenses": normalized_expenses,
        "financial_health": financial_health,
        "goal_specific_plan": goal_plan,
        "insights": insights,
        "action_items": action_items,
        "next_review_date": _add_months(as_of, config.assumptions.review_interval_months).isoformat(),
    }

    if logger:
        logger.end_request({
            "success": True,
            "health_score": financial_health["score"],
            "actions": len(action_items),
        })

    return {"success": True, "plan": plan}


def get_engine_status(config: Optional[PlanningConfig] = None) -> Dict[str, Any]:
    config = config or DEFAULT_CONFIG
    return {
        "version": ENGINE_VERSION,
        "tax_year": config.tax_year.tax_year,
        "supported_goals": [member.value for member in GoalType],
        "features": [
            f"UK Tax Calculations ({config.tax_year.tax_year})",
            "Income Normalization",
            "Goal-Specific Planning",
            "Risk-Based Asset Allocation",
            "Protection Needs Analysis",
            "Comprehensive Financial Planning",
        ],
    }
