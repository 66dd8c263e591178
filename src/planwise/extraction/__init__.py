from .engine import calculate_completion_score, extract_financial_data, generate_insights, goal_relevance
from .parsers import (
    calculate_urgency,
    detect_frequency,
    parse_amounts,
    parse_target_age,
    parse_timeframes,
    parse_timeline,
    split_clauses,
)

__all__ = [
    'extract_financial_data', 'calculate_completion_score', 'generate_insights', 'goal_relevance',
    'parse_amounts', 'parse_timeframes', 'parse_target_age', 'parse_timeline', 'calculate_urgency',
    'split_clauses', 'detect_frequency'
]
