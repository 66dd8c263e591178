"""
Insight & Action Generator - plain-English findings and next steps for a computed plan.
"""

from typing import Any, Dict, List, Optional, Union

from planwise.config import DEFAULT_CONFIG, PlanningConfig
from planwise.models import GoalType
from planwise.tools.financial_calculator import round_half_up


# Timeframes an action can carry, soonest first
ACTION_TIMEFRAMES = ("1 week", "2 weeks", "1 month", "1-3 months")


def _insight(type_: str, category: str, message: str) -> Dict[str, str]:
    return {"type": type_, "category": category, "message": message}


def _action(priority: str, category: str, action: str, description: str, timeframe: str) -> Dict[str, str]:
    return {
        "priority": priority,
        "category": category,
        "action": action,
        "description": description,
        "timeframe": timeframe,
    }


def generate_key_insights(
    goal_type: Union[GoalType, str],
    income: Dict[str, Any],
    expenses: Dict[str, Any],
    plan: Dict[str, Any],
) -> List[Dict[str, str]]:
    """
    Findings about savings rate, tax and the goal itself.

    Args:
        goal_type: Goal the plan was built for
        income: Normalized income
        expenses: Normalized expenses
        plan: Goal-specific plan

    Returns:
        List of ``{type, category, message}`` insights
    """
    goal = GoalType.parse(goal_type)
    insights = []

    monthly_net = income.get("monthly_net", 0)
    surplus = monthly_net - expenses.get("monthly_total", 0)
    savings_rate = surplus / monthly_net if monthly_net > 0 else 0
    rate_percent = round_half_up(savings_rate * 100)

    if surplus <= 0:
        insights.append(_insight(
            "alert", "budget",
            "Your expenses meet or exceed your income. Budget review is essential before pursuing financial goals."
        ))
    elif savings_rate > 0.2:
        insights.append(_insight(
            "positive", "savings",
            f"Excellent savings rate of {rate_percent}%! This puts you in a strong position to achieve your goals."
        ))
    elif savings_rate < 0.1:
        insights.append(_insight(
            "warning", "savings",
            f"Your savings rate of {rate_percent}% is below the recommended 10-20%. Consider reviewing your expenses."
        ))

    effective_rate = income.get("tax_breakdown", {}).get("effective_rate", 0)
    if effective_rate > 20:
        insights.append(_insight(
            "opportunity", "tax",
            f"With an effective tax rate of {effective_rate}%, consider pension contributions and ISAs for tax efficiency."
        ))

    summary = plan.get("summary")

    if goal == GoalType.RETIREMENT and summary:
        needed = summary["monthly_contribution_needed"]
        if plan["affordability"]["contribution_affordable"]:
            insights.append(_insight(
                "positive", "retirement",
                f"Good news! Your required pension contribution of £{needed:,.0f} per month is affordable."
            ))
        else:
            insights.append(_insight(
                "warning", "retirement",
                f"Your retirement plan requires £{needed:,.0f} monthly, but you only have £{surplus:,.0f} surplus. "
                "Consider extending your timeline or reducing expenses."
            ))

    elif goal == GoalType.HOUSE and summary:
        if not plan["affordability"]["price_affordable"]:
            insights.append(_insight(
                "warning", "house",
                f"A £{summary['target_house_price']:,.0f} home is above the £{summary['max_affordable_price']:,.0f} "
                "your income can support with a 5% deposit."
            ))
        stamp_duty = plan["additional_costs"]["stamp_duty"]
        if stamp_duty == 0:
            insights.append(_insight(
                "positive", "house",
                "As a first-time buyer you would pay no stamp duty at this price."
            ))

    elif goal == GoalType.PROTECTION and plan.get("affordability"):
        if not plan["affordability"]["affordable"]:
            insights.append(_insight(
                "warning", "protection",
                f"Full cover would cost {plan['affordability']['as_percentage_of_income']}% of your net income. "
                "Prioritise income protection and term life cover."
            ))

    return insights


def generate_action_items(
    goal_type: Union[GoalType, str],
    plan: Dict[str, Any],
    health: Dict[str, Any],
    config: Optional[PlanningConfig] = None,
) -> List[Dict[str, str]]:
    """Prioritised next steps; priorities are ``high`` or ``medium``."""
    tax_year = (config or DEFAULT_CONFIG).tax_year
    goal = GoalType.parse(goal_type)
    actions = []

    if health.get("score", 0) < 60:
        actions.append(_action(
            "high", "foundation", "Improve Financial Foundation",
            "Focus on increasing income or reducing expenses to improve your financial health score",
            "1-3 months"
        ))

    summary = plan.get("summary")

    if goal == GoalType.RETIREMENT and summary:
        actions.append(_action(
            "high", "retirement", "Set Up Pension Contributions",
            f"Arrange monthly pension contributions of £{summary['monthly_contribution_needed']:,.0f}",
            "1 month"
        ))
        actions.append(_action(
            "medium", "retirement", "Review State Pension Forecast",
            "Check your state pension forecast on gov.uk to understand your entitlement",
            "1 week"
        ))

    elif goal == GoalType.HOUSE and summary:
        actions.append(_action(
            "high", "saving", "Open Savings Account",
            f"Set up automatic savings of £{summary['monthly_contribution_needed']:,.0f} for your house deposit",
            "1 week"
        ))
        if summary["target_house_price"] <= tax_year.lifetime_isa_max_price:
            actions.append(_action(
                "medium", "saving", "Open Lifetime ISA",
                f"Get a 25% government bonus on savings up to £{tax_year.lifetime_isa_limit:,.0f} per year",
                "1 week"
            ))

    elif goal == GoalType.INVESTMENT:
        actions.append(_action(
            "high", "investment", "Open Investment ISA",
            f"Start tax-efficient investing within your £{tax_year.isa_annual_limit:,.0f} annual ISA allowance",
            "1 week"
        ))

    elif goal == GoalType.PROTECTION and summary:
        actions.append(_action(
            "high", "protection", "Get Protection Quotes",
            f"Compare quotes for life cover of £{summary['life_insurance_needed']:,.0f} "
            f"and income protection of £{summary['income_protection_needed']:,.0f} a month",
            "2 weeks"
        ))

    elif goal == GoalType.COMPREHENSIVE:
        for step in plan.get("priority", [])[:3]:
            actions.append(_action(
                "high" if step["urgency"] == "High" else "medium",
                "comprehensive",
                step["action"],
                f"{step['description']} (target £{step['target_amount']:,.0f})",
                "1 month" if step["priority"] == 1 else "1-3 months"
            ))

    return actions
