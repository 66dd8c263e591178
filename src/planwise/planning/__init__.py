from .engine import generate_financial_plan, get_engine_status, validate_financial_data
from .health_score import FinancialHealthScore, calculate_financial_health
from .normalizer import calculate_tax_and_ni, convert_to_annual, convert_to_monthly, normalize_expenses, normalize_income
from .planners import PLANNERS

__all__ = [
    'generate_financial_plan', 'get_engine_status', 'validate_financial_data',
    'FinancialHealthScore', 'calculate_financial_health',
    'calculate_tax_and_ni', 'convert_to_annual', 'convert_to_monthly', 'normalize_income', 'normalize_expenses',
    'PLANNERS'
]
