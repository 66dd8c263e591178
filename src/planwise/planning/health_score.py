"""
Financial Health Score - a 0-100 measure of how solid someone's finances are.
"""

from typing import Any, Dict, Optional

from planwise.models import FinancialFacts
from planwise.planning.planners import liquid_savings
from planwise.tools.financial_calculator import round_half_up


class FinancialHealthScore:
    """
    Score = Surplus (0-40) + Emergency Fund (0-30) + Debt Load (0-30)

    Surplus points are the savings rate in percent. Emergency fund points are
    5 per month of expenses held in liquid savings. Debt load compares
    non-mortgage debt to gross annual income.
    """

    def __init__(self):
        self.caps = {
            "surplus": 40,
            "emergency_fund": 30,
            "debt": 30
        }
        self.points_per_emergency_month = 5
        self.debt_bands = [
            (0.2, 30),
            (0.4, 15)
        ]
        self.status_bands = [
            (80, "Excellent"),
            (60, "Good"),
            (40, "Fair")
        ]

    def calculate(
        self,
        income: Dict[str, Any],
        expenses: Dict[str, Any],
        facts: Optional[FinancialFacts] = None
    ) -> Dict[str, Any]:
        """Score normalized income/expenses; facts add savings and debt data."""
        monthly_net = income.get("monthly_net", 0)
        monthly_expenses = expenses.get("monthly_total", 0)
        monthly_surplus = monthly_net - monthly_expenses
        savings_rate = monthly_surplus / monthly_net if monthly_net > 0 else 0

        emergency_months = self._emergency_fund_months(monthly_expenses, facts)
        debt_ratio = self._debt_to_income(income.get("annual_gross", 0), facts)

        score = 0.0
        score += self._surplus_points(monthly_surplus, savings_rate)
        score += min(self.caps["emergency_fund"], emergency_months * self.points_per_emergency_month)
        score += self._debt_points(debt_ratio)

        return {
            "score": round_half_up(score),
            "monthly_surplus": monthly_surplus,
            "savings_rate": round_half_up(savings_rate * 100),
            "emergency_fund_months": round(emergency_months, 1),
            "debt_to_income_ratio": round_half_up(debt_ratio * 100),
            "status": self._status(score)
        }

    def _surplus_points(self, monthly_surplus: float, savings_rate: float) -> float:
        if monthly_surplus <= 0:
            return 0.0
        return min(self.caps["surplus"], savings_rate * 100)

    def _emergency_fund_months(self, monthly_expenses: float, facts: Optional[FinancialFacts]) -> float:
        """Months of expenses covered by non-pension assets"""
        if not facts or monthly_expenses <= 0:
            return 0.0
        return liquid_savings(facts) / monthly_expenses

    def _debt_to_income(self, annual_gross: float, facts: Optional[FinancialFacts]) -> float:
        """Non-mortgage debt as a share of gross annual income"""
        if not facts or not facts.debts:
            return 0.0
        debt = sum(d.primary_amount for d in facts.debts if d.type != "mortgage")
        if annual_gross <= 0:
            return 1.0 if debt > 0 else 0.0
        return debt / annual_gross

    def _debt_points(self, debt_ratio: float) -> int:
        for limit, points in self.debt_bands:
            if debt_ratio < limit:
                return points
        return 0

    def _status(self, score: float) -> str:
        for threshold, label in self.status_bands:
            if score >= threshold:
                return label
        return "Needs Improvement"


def calculate_financial_health(
    income: Dict[str, Any],
    expenses: Dict[str, Any],
    facts: Optional[FinancialFacts] = None
) -> Dict[str, Any]:
    return FinancialHealthScore().calculate(income, expenses, facts)
