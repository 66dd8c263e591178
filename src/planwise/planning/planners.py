"""
Goal Planners - retirement, house purchase, investment, protection, comprehensive and basic plans.

Every planner has the same shape, ``plan(facts, config) -> dict``, and is
looked up through ``PLANNERS`` by ``GoalType``. Missing optional facts fall
back to the assumptions in ``PlanningConfig``; planners never raise on thin
data.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from planwise.config import PlanningConfig
from planwise.extraction.classifier import HIGH_INTEREST_DEBTS
from planwise.extraction.parsers import parse_target_age
from planwise.models import AssetFact, FinancialFacts, GoalFact, GoalType
from planwise.planning.normalizer import normalize_expenses, normalize_income
from planwise.tools.financial_calculator import (
    calculate_stamp_duty,
    estimate_insurance_premiums,
    investment_projections,
    project_growth,
    required_monthly_contribution,
    round_half_up,
)


Planner = Callable[[FinancialFacts, PlanningConfig], Dict[str, Any]]

WEEKS_PER_YEAR = 52


# ── Shared helpers ────────────────────────────────────────────────────────────

def _normalized(facts: FinancialFacts, config: PlanningConfig) -> Tuple[Dict[str, Any], Dict[str, Any], float]:
    income = normalize_income(facts.income, config.tax_year)
    expenses = normalize_expenses(facts.expenses)
    surplus = income["monthly_net"] - expenses["monthly_total"]
    return income, expenses, surplus


def _goals_about(facts: FinancialFacts, goal_type: str, keyword: str) -> List[GoalFact]:
    return [
        goal for goal in facts.goals
        if goal_type in goal.type or keyword in goal.text.lower()
    ]


def _sum_assets(assets: List[AssetFact], types: Tuple[str, ...] = (), keywords: Tuple[str, ...] = ()) -> float:
    total = 0.0
    for asset in assets:
        text = asset.text.lower()
        if asset.type in types or any(keyword in text for keyword in keywords):
            total += asset.primary_amount
    return total


def pension_value(facts: FinancialFacts) -> float:
    return _sum_assets(facts.assets, types=("pension",), keywords=("pension",))


def house_savings(facts: FinancialFacts) -> float:
    return _sum_assets(facts.assets, types=("house_savings",), keywords=("house", "deposit", "property"))


def liquid_savings(facts: FinancialFacts) -> float:
    """Everything except pension pots, which can't be drawn before retirement."""
    return sum(
        asset.primary_amount for asset in facts.assets
        if asset.type != "pension" and "pension" not in asset.text.lower()
    )


def high_interest_debt(facts: FinancialFacts) -> float:
    return sum(debt.primary_amount for debt in facts.debts if debt.type in HIGH_INTEREST_DEBTS)


def target_retirement_age(goals: List[GoalFact], config: PlanningConfig) -> int:
    """
    Age from "retire at 60" style text, an explicit age timeframe, or the
    current age plus a years timeframe; the default retirement age otherwise.
    """
    assumptions = config.assumptions
    for goal in goals:
        age = parse_target_age(goal.text)
        if age:
            return age

        for timeframe in goal.timeframes:
            if timeframe.unit == "age":
                return timeframe.value

        if goal.timeframes and goal.timeframes[0].unit == "years":
            return assumptions.current_age + goal.timeframes[0].value

    return assumptions.default_retirement_age


def _timeframe_months(goals: List[GoalFact]) -> Optional[int]:
    for goal in goals:
        for timeframe in goal.timeframes:
            if timeframe.unit == "years":
                return timeframe.value * 12
            if timeframe.unit == "months":
                return timeframe.value
            if timeframe.unit == "weeks":
                return max(1, round_half_up(timeframe.value * 12 / WEEKS_PER_YEAR))
    return None


def _target_amount(goals: List[GoalFact]) -> Optional[float]:
    # Largest figure wins so "a £350k house with £30k saved" targets the price
    for goal in goals:
        if goal.amounts:
            return max(goal.amounts)
    return None


# ── Retirement ────────────────────────────────────────────────────────────────

def calculate_retirement_plan(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    """
    Pension pot needed for 70% of today's net income, less the state pension,
    drawn at the safe withdrawal rate; and the monthly saving that closes the
    gap by the target age.
    """
    assumptions = config.assumptions
    tax_year = config.tax_year
    income, expenses, surplus = _normalized(facts, config)

    goals = _goals_about(facts, "retirement", "retire")
    target_age = target_retirement_age(goals, config)
    years_to_retirement = max(0, target_age - assumptions.current_age)

    required_annual_income = income["annual_net"] * assumptions.income_replacement
    private_income_required = max(0.0, required_annual_income - tax_year.state_pension_annual)
    pot_required = round_half_up(private_income_required / assumptions.withdrawal_rate)

    current_pension = pension_value(facts)
    pension_gap = max(0.0, pot_required - current_pension)
    contribution_needed = required_monthly_contribution(
        pension_gap, years_to_retirement, assumptions.pension_return
    )

    recommended = max(0.0, min(contribution_needed, surplus * assumptions.contribution_surplus_share))
    recommended = round(recommended, 2)
    affordability_ratio = contribution_needed / surplus if surplus > 0 else 0

    milestones = list(range(5, years_to_retirement, 5))
    if years_to_retirement > 0:
        milestones.append(years_to_retirement)
    projections = [
        project_growth(current_pension, recommended, years, assumptions.pension_return)
        for years in milestones
    ]

    final = project_growth(current_pension, recommended, years_to_retirement, assumptions.pension_return)
    private_monthly = round_half_up(final["projected_value"] * assumptions.withdrawal_rate / 12)
    state_monthly = round_half_up(tax_year.state_pension_annual / 12)

    return {
        "summary": {
            "target_retirement_age": target_age,
            "current_age": assumptions.current_age,
            "years_to_retirement": years_to_retirement,
            "required_monthly_income": round_half_up(required_annual_income / 12),
            "required_annual_income": round(required_annual_income, 2),
            "pension_pot_required": pot_required,
            "current_pension_value": current_pension,
            "pension_gap": pension_gap,
            "monthly_contribution_needed": contribution_needed,
        },
        "state_pension": {
            "annual_amount": tax_year.state_pension_annual,
            "monthly_amount": state_monthly,
            "eligibility_age": tax_year.state_pension_age,
        },
        "affordability": {
            "current_surplus": surplus,
            "contribution_affordable": contribution_needed <= surplus,
            "affordability_ratio": round_half_up(affordability_ratio * 100),
            "recommended_contribution": recommended,
        },
        "projections": projections,
        "retirement_income": {
            "projected_pension_pot": final["projected_value"],
            "monthly_private_income": private_monthly,
            "monthly_state_pension": state_monthly,
            "total_monthly_income": private_monthly + state_monthly,
            "meets_target": private_monthly + state_monthly >= round_half_up(required_annual_income / 12),
        },
    }


# ── House purchase ────────────────────────────────────────────────────────────

def _house_recommendations(
    target_price: float,
    max_affordable: float,
    savings_affordable: bool,
    monthly_required: float,
    config: PlanningConfig,
) -> List[Dict[str, str]]:
    tax_year = config.tax_year
    recommendations = []

    if target_price > max_affordable:
        recommendations.append({
            "type": "affordability",
            "priority": "high",
            "message": (
                f"Your target house price (£{target_price:,.0f}) exceeds your borrowing capacity "
                f"(£{max_affordable:,.0f}). Consider a lower price or increasing your income."
            ),
        })

    if not savings_affordable:
        recommendations.append({
            "type": "savings",
            "priority": "high",
            "message": (
                f"You need to save £{monthly_required:,.0f} a month for your deposit, but your "
                "current surplus doesn't cover this. Review your expenses or extend your timeframe."
            ),
        })

    if target_price <= max_affordable and savings_affordable:
        message = "You are on track for your deposit."
        if target_price <= tax_year.lifetime_isa_max_price:
            message = (
                "Consider a Lifetime ISA for a 25% government bonus on your deposit savings "
                f"(up to £{tax_year.lifetime_isa_bonus:,.0f} a year)."
            )
        recommendations.append({"type": "strategy", "priority": "medium", "message": message})

    return recommendations


def calculate_house_purchase_plan(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    """Deposit, mortgage capacity, stamp duty and the monthly saving for a purchase."""
    assumptions = config.assumptions
    tax_year = config.tax_year
    income, expenses, surplus = _normalized(facts, config)

    goals = _goals_about(facts, "house", "house")
    target_price = _target_amount(goals) or assumptions.default_house_price
    months = _timeframe_months(goals) or int(assumptions.default_house_timeframe_years * 12)
    months = max(1, months)

    max_mortgage = income["annual_gross"] * tax_year.max_income_multiple
    max_affordable = max_mortgage / (1 - tax_year.min_deposit)

    minimum_deposit = target_price * tax_year.min_deposit
    recommended_deposit = target_price * assumptions.recommended_deposit
    optimal_deposit = target_price * assumptions.optimal_deposit

    current_savings = house_savings(facts)
    deposit_gap = max(0.0, recommended_deposit - current_savings)
    monthly_needed = round_half_up(deposit_gap / months)
    savings_affordable = monthly_needed <= surplus

    stamp_duty = calculate_stamp_duty(target_price, assumptions.first_time_buyer, tax_year)
    extra_costs = stamp_duty + assumptions.legal_fees + assumptions.survey_fees + assumptions.moving_costs

    return {
        "summary": {
            "target_house_price": target_price,
            "timeframe": round(months / 12, 1),
            "timeframe_months": months,
            "max_affordable_price": round(max_affordable, 2),
            "mortgage_capacity": round(max_mortgage, 2),
            "deposit_required": round(recommended_deposit, 2),
            "deposit_gap": round(deposit_gap, 2),
            "monthly_contribution_needed": monthly_needed,
            "total_cost_with_fees": round(target_price + extra_costs, 2),
        },
        "deposits": {
            "minimum": round(minimum_deposit, 2),
            "recommended": round(recommended_deposit, 2),
            "optimal": round(optimal_deposit, 2),
            "current": current_savings,
        },
        "affordability": {
            "price_affordable": target_price <= max_affordable,
            "savings_affordable": savings_affordable,
            "current_surplus": surplus,
            "surplus_after_saving": surplus - monthly_needed,
        },
        "additional_costs": {
            "stamp_duty": stamp_duty,
            "first_time_buyer": assumptions.first_time_buyer,
            "legal_fees": assumptions.legal_fees,
            "survey_fees": assumptions.survey_fees,
            "moving_costs": assumptions.moving_costs,
            "total": round(extra_costs, 2),
        },
        "recommendations": _house_recommendations(
            target_price, max_affordable, savings_affordable, monthly_needed, config
        ),
    }


# ── Investment ────────────────────────────────────────────────────────────────

def calculate_investment_plan(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    """Monthly amount to invest once the emergency fund is covered, and where to put it."""
    assumptions = config.assumptions
    tax_year = config.tax_year
    income, expenses, surplus = _normalized(facts, config)

    risk_level = facts.risk_tolerance.level if facts.risk_tolerance else assumptions.default_risk_level
    if risk_level not in assumptions.allocations:
        risk_level = assumptions.default_risk_level
    allocation = assumptions.allocations[risk_level]

    emergency_needed = expenses["monthly_total"] * assumptions.emergency_fund_months
    emergency_gap = max(0.0, emergency_needed - liquid_savings(facts))
    reserve = assumptions.emergency_fund_reserve if emergency_gap > 0 else 0
    monthly_capacity = max(0.0, surplus - reserve)

    annual_capacity = monthly_capacity * 12
    isa_contribution = min(annual_capacity, tax_year.isa_annual_limit)

    return {
        "summary": {
            "monthly_investment_capacity": monthly_capacity,
            "annual_investment_capacity": annual_capacity,
            "risk_tolerance": risk_level,
            "emergency_fund_status": "Complete" if emergency_gap == 0 else "Needed",
            "emergency_fund_gap": round(emergency_gap, 2),
        },
        "asset_allocation": allocation.model_dump(),
        "isa_strategy": {
            "annual_allowance": tax_year.isa_annual_limit,
            "recommended_contribution": isa_contribution,
            "utilization_rate": round_half_up(isa_contribution / tax_year.isa_annual_limit * 100),
        },
        "projections": investment_projections(
            monthly_capacity, allocation.expected_return, assumptions.investment_horizons
        ),
    }


# ── Protection ────────────────────────────────────────────────────────────────

def calculate_protection_needs(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    """Life, income protection and critical illness cover with rough premiums."""
    assumptions = config.assumptions
    income, _, _ = _normalized(facts, config)

    life_cover = income["annual_gross"] * assumptions.life_cover_multiple
    income_cover = round_half_up(income["monthly_gross"] * assumptions.income_protection_share)
    critical_cover = income["annual_gross"] * assumptions.critical_illness_multiple

    premiums = estimate_insurance_premiums(
        life_cover, income_cover, critical_cover, assumptions.current_age, assumptions.premium_rates
    )
    monthly_net = income["monthly_net"]

    return {
        "summary": {
            "life_insurance_needed": life_cover,
            "income_protection_needed": income_cover,
            "critical_illness_needed": critical_cover,
            "total_monthly_premiums": premiums["total"],
        },
        "life_insurance": {
            "recommended": life_cover,
            "rationale": "10x annual gross income to cover family needs and debts",
            "estimated_premium": premiums["life"],
        },
        "income_protection": {
            "recommended": income_cover,
            "rationale": "65% of gross income to maintain your lifestyle if unable to work",
            "estimated_premium": premiums["income"],
        },
        "critical_illness": {
            "recommended": critical_cover,
            "rationale": "4x annual income to cover treatment costs and lifestyle changes",
            "estimated_premium": premiums["critical"],
        },
        "affordability": {
            "total_premiums": premiums["total"],
            "as_percentage_of_income": (
                round_half_up(premiums["total"] / monthly_net * 100) if monthly_net > 0 else 0
            ),
            "affordable": premiums["total"] <= monthly_net * assumptions.max_premium_share,
        },
    }


# ── Comprehensive ─────────────────────────────────────────────────────────────

def calculate_priority_order(facts: FinancialFacts, config: PlanningConfig) -> List[Dict[str, Any]]:
    """Fixed five-step ordering; steps with nothing to do are dropped."""
    assumptions = config.assumptions
    income, expenses, surplus = _normalized(facts, config)

    emergency_target = max(
        0.0, expenses["monthly_total"] * assumptions.emergency_fund_months - liquid_savings(facts)
    )

    steps = [
        (1, "Build Emergency Fund", "Save 3-6 months of expenses for financial security",
         emergency_target, "High"),
        (2, "Maximize Employer Pension", "Contribute enough to get full employer matching",
         income["monthly_gross"] * assumptions.employer_match_rate, "High"),
        (3, "Pay High-Interest Debt", "Clear credit cards, overdrafts and high-interest loans",
         high_interest_debt(facts), "High"),
        (4, "Arrange Protection Insurance", "Life, income protection and critical illness cover",
         income["monthly_net"] * assumptions.max_premium_share, "Medium"),
        (5, "Increase Pension Contributions", "Additional contributions for retirement planning",
         surplus * assumptions.extra_pension_surplus_share, "Medium"),
    ]

    return [
        {
            "priority": priority,
            "action": action,
            "description": description,
            "target_amount": round(target, 2),
            "urgency": urgency,
        }
        for priority, action, description, target, urgency in steps
        if target > 0
    ]


def calculate_comprehensive_plan(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    return {
        "retirement": calculate_retirement_plan(facts, config),
        "house_purchase": calculate_house_purchase_plan(facts, config),
        "investment": calculate_investment_plan(facts, config),
        "protection": calculate_protection_needs(facts, config),
        "priority": calculate_priority_order(facts, config),
    }


# ── Basic ─────────────────────────────────────────────────────────────────────

def calculate_basic_plan(facts: FinancialFacts, config: PlanningConfig) -> Dict[str, Any]:
    income, expenses, surplus = _normalized(facts, config)
    monthly_net = income["monthly_net"]

    return {
        "summary": {
            "monthly_income": monthly_net,
            "monthly_expenses": expenses["monthly_total"],
            "monthly_surplus": surplus,
            "savings_rate": round_half_up(surplus / monthly_net * 100) if monthly_net > 0 else 0,
        },
        "recommendations": [
            "Build an emergency fund of 3-6 months expenses",
            "Consider your retirement planning options",
            "Review your insurance needs",
            "Explore investment opportunities for long-term growth",
        ],
    }


PLANNERS: Dict[GoalType, Planner] = {
    GoalType.RETIREMENT: calculate_retirement_plan,
    GoalType.HOUSE: calculate_house_purchase_plan,
    GoalType.INVESTMENT: calculate_investment_plan,
    GoalType.PROTECTION: calculate_protection_needs,
    GoalType.COMPREHENSIVE: calculate_comprehensive_plan,
    GoalType.BASIC: calculate_basic_plan,
}
