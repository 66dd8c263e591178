"""
planwise - UK conversational financial planning: fact extraction, tax and goal plans.
"""

# Extraction first: planners reuse its classifier tables
from .extraction import calculate_completion_score, extract_financial_data, generate_insights
from .planning import calculate_tax_and_ni, generate_financial_plan, get_engine_status, validate_financial_data
from .planning.engine import ENGINE_VERSION
from .config import (
    DEFAULT_CONFIG,
    PlanningAssumptions,
    PlanningConfig,
    TaxYearConfig,
    UK_2025_26,
    get_tax_year,
    load_settings,
)
from .models import (
    AssetFact,
    DebtFact,
    ExpenseFact,
    FinancialFacts,
    GoalFact,
    GoalType,
    IncomeFact,
    RawMessage,
    RiskProfileFact,
    Timeframe,
    TimelineFact,
)

# Tools wrap both engines, so they load last
from .tools.financial_calculator import FINANCIAL_CALCULATOR_TOOLS
from .tools.planning_tools import PLANNING_TOOLS

__version__ = ENGINE_VERSION

__all__ = [
    'extract_financial_data', 'calculate_completion_score', 'generate_insights',
    'generate_financial_plan', 'validate_financial_data', 'get_engine_status', 'calculate_tax_and_ni',
    'PlanningConfig', 'PlanningAssumptions', 'TaxYearConfig', 'UK_2025_26', 'DEFAULT_CONFIG',
    'get_tax_year', 'load_settings',
    'RawMessage', 'FinancialFacts', 'IncomeFact', 'ExpenseFact', 'GoalFact', 'AssetFact', 'DebtFact',
    'RiskProfileFact', 'Timeframe', 'TimelineFact', 'GoalType',
    'FINANCIAL_CALCULATOR_TOOLS', 'PLANNING_TOOLS'
]
