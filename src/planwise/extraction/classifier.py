"""
Fact Classifier - keyword and regex rule tables that tag messages and facts.

Tables are data; ``planwise.utils.rules`` evaluates them. Income and expense
categories belong to the normalizer and live there.
"""

from typing import List, Optional, Sequence

from planwise.models import RiskLevel
from planwise.utils.rules import all_matches, compile_rules, first_match


# ── Message buckets ───────────────────────────────────────────────────────────
# Plain substring tests on lower-cased text.

MESSAGE_KEYWORDS = {
    "income": ("earn", "income", "salary", "wage", "make"),
    "expenses": ("spend", "cost", "expenses", "bills", "rent", "mortgage"),
    "goals": ("goal", "want", "plan", "save for", "buy", "retire", "house"),
    "risk_tolerance": ("risk", "safe", "conservative", "aggressive", "volatile"),
    "assets": ("savings", "saved", "pension pot", "isa", "portfolio", "investments"),
    "debts": ("owe", "debt", "loan", "credit card", "overdraft"),
}


def message_buckets(text: Optional[str]) -> List[str]:
    """Fact sections a message belongs to; a message can land in several."""
    if not text:
        return []
    lower = text.lower()
    return [
        bucket for bucket, keywords in MESSAGE_KEYWORDS.items()
        if any(keyword in lower for keyword in keywords)
    ]


# ── Goals ─────────────────────────────────────────────────────────────────────

GOAL_RULES = compile_rules(
    (r"retire|pension|retirement", "retirement"),
    (r"house|home|property|mortgage", "house"),
    (r"emergency|fund|rainy.*day", "emergency"),
    (r"education|university|school|college|course", "education"),
    (r"travel|holiday|vacation|trip", "travel"),
    (r"debt|pay.*off|pay.*down", "debt"),
    (r"invest|portfolio|stocks|shares", "investment"),
    (r"\bcar\b|vehicle|\bauto\b", "car"),
    (r"wedding|marriage|marry", "wedding"),
    (r"business|startup|company", "business"),
)

# Earlier entries are more urgent; the first two count as high priority.
GOAL_PRIORITY_ORDER = ("emergency", "debt", "retirement", "house", "investment", "education")


def categorize_goal(text: Optional[str]) -> List[str]:
    return all_matches(GOAL_RULES, text)


def goal_priority(goal_types: Sequence[str], goal_context: Optional[str] = None) -> str:
    if goal_context and goal_context in goal_types:
        return "high"
    for index, goal_type in enumerate(GOAL_PRIORITY_ORDER):
        if goal_type in goal_types:
            return "high" if index < 2 else "medium"
    return "low"


# ── Risk ──────────────────────────────────────────────────────────────────────

RISK_RULES = compile_rules(
    (r"safe|secure|conservative|careful|low.*risk|cautious|stable|guaranteed", "low"),
    (r"aggressive|high.*risk|volatile|adventurous|risky|speculative", "high"),
    (r"moderate|balanced|medium.*risk", "medium"),
)


def assess_risk_level(text: Optional[str]) -> RiskLevel:
    """low -> high -> medium, first hit wins; ``unknown`` otherwise."""
    if not isinstance(text, str):
        return "unknown"
    return first_match(RISK_RULES, text, "unknown")


# ── Assets & debts ────────────────────────────────────────────────────────────

ASSET_RULES = compile_rules(
    (r"pension", "pension"),
    (r"\bisa\b", "isa"),
    (r"portfolio", "portfolio"),
    (r"investments?", "investments"),
    (r"deposit|house|property", "house_savings"),
    (r"savings|saved", "savings"),
)

DEBT_RULES = compile_rules(
    (r"credit\s*card", "credit_card"),
    (r"overdraft", "overdraft"),
    (r"student\s*loan", "student_loan"),
    (r"loan", "loan"),
    (r"mortgage", "mortgage"),
)

DEBT_PRIORITY = {
    "credit_card": "high",
    "overdraft": "high",
    "loan": "medium",
    "student_loan": "low",
    "mortgage": "low",
}

# Cleared before extra pension contributions in the comprehensive plan
HIGH_INTEREST_DEBTS = ("credit_card", "overdraft", "loan")


def categorize_asset(text: Optional[str]) -> str:
    return first_match(ASSET_RULES, text, "savings")


def categorize_debt(text: Optional[str]) -> str:
    return first_match(DEBT_RULES, text, "general")


def debt_priority(debt_type: str) -> str:
    return DEBT_PRIORITY.get(debt_type, "medium")
